"""
Binary wire codec - Stateless encode/decode functions for the domain DTOs.

Layout (little-endian):
- flag byte: one bit per boolean field, unknown bits are rejected
- int32 / int64: signed fixed width integers
- UUID: two signed int64 words, most significant first
- string: int32 UTF-8 byte length followed by the bytes, -1 for None
- set / list: int32 element count followed by the strings
- host map: int32 entry count followed by (string host, int32 state) pairs

Records:
- PackageUserState:    flags(0x08 link handling) uuid package user(int32) map
- VerificationRequest: flags(0) set
- GeolocationSuggestion: flags(0x01 zone ids present) [list] list(debug)

Decoding never substitutes defaults: truncated input, bad counts, unknown
flag bits and trailing bytes raise WireDecodeError, unknown state codes
raise InvalidStateCode.
"""

import struct
import uuid

from src.domain.exceptions import WireDecodeError
from src.domain.geolocation import GeolocationSuggestion
from src.domain.ports import DomainState
from src.domain.request import VerificationRequest
from src.domain.user_state import PackageUserState, normalize_host

FLAG_LINK_HANDLING_ALLOWED = 0x08
FLAG_ZONE_IDS_PRESENT = 0x01

_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")
_BYTE = struct.Struct("<B")


class _Writer:
    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_byte(self, value: int) -> None:
        self._buffer += _BYTE.pack(value)

    def write_int32(self, value: int) -> None:
        self._buffer += _INT32.pack(value)

    def write_int64(self, value: int) -> None:
        self._buffer += _INT64.pack(value)

    def write_uuid(self, value: uuid.UUID) -> None:
        most, least = divmod(value.int, 1 << 64)
        # Stored as signed words
        self.write_int64(most - (1 << 64) if most >= 1 << 63 else most)
        self.write_int64(least - (1 << 64) if least >= 1 << 63 else least)

    def write_string(self, value: str | None) -> None:
        if value is None:
            self.write_int32(-1)
            return
        encoded = value.encode("utf-8")
        self.write_int32(len(encoded))
        self._buffer += encoded

    def write_strings(self, values) -> None:
        values = list(values)
        self.write_int32(len(values))
        for value in values:
            self.write_string(value)

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._offset = 0

    def _take(self, size: int) -> memoryview:
        end = self._offset + size
        if size < 0 or end > len(self._data):
            raise WireDecodeError(
                f"Truncated record: need {size} byte(s) at offset {self._offset}, "
                f"have {len(self._data) - self._offset}"
            )
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def read_byte(self) -> int:
        return _BYTE.unpack(self._take(_BYTE.size))[0]

    def read_int32(self) -> int:
        return _INT32.unpack(self._take(_INT32.size))[0]

    def read_int64(self) -> int:
        return _INT64.unpack(self._take(_INT64.size))[0]

    def read_uuid(self) -> uuid.UUID:
        most = self.read_int64() & ((1 << 64) - 1)
        least = self.read_int64() & ((1 << 64) - 1)
        return uuid.UUID(int=(most << 64) | least)

    def read_string(self) -> str | None:
        length = self.read_int32()
        if length == -1:
            return None
        if length < 0:
            raise WireDecodeError(f"Invalid string length: {length}")
        try:
            return bytes(self._take(length)).decode("utf-8")
        except UnicodeDecodeError as e:
            raise WireDecodeError(f"Invalid UTF-8 string: {e}") from e

    def read_required_string(self, field_name: str) -> str:
        value = self.read_string()
        if value is None:
            raise WireDecodeError(f"Missing required string: {field_name}")
        return value

    def read_count(self, field_name: str) -> int:
        count = self.read_int32()
        # Each element needs at least its own int32 length prefix
        if count < 0 or count * _INT32.size > self.remaining:
            raise WireDecodeError(f"Invalid element count for {field_name}: {count}")
        return count

    def read_strings(self, field_name: str) -> list[str]:
        return [self.read_required_string(field_name) for _ in range(self.read_count(field_name))]

    def read_flags(self, allowed: int) -> int:
        flags = self.read_byte()
        if flags & ~allowed:
            raise WireDecodeError(f"Unknown flag bits: {flags & ~allowed:#04x}")
        return flags

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def finish(self) -> None:
        if self.remaining:
            raise WireDecodeError(f"{self.remaining} trailing byte(s) after record")


def encode_package_user_state(state: PackageUserState) -> bytes:
    writer = _Writer()
    writer.write_byte(FLAG_LINK_HANDLING_ALLOWED if state.link_handling_allowed else 0)
    writer.write_uuid(state.identifier)
    writer.write_string(state.package_name)
    writer.write_int32(state.user)
    writer.write_int32(len(state.host_to_state))
    for host, domain_state in state.host_to_state.items():
        writer.write_string(host)
        writer.write_int32(int(domain_state))
    return writer.to_bytes()


def decode_package_user_state(data: bytes) -> PackageUserState:
    """
    Decode a PackageUserState record.

    Raises:
        WireDecodeError: If the record is malformed
        InvalidStateCode: If a host carries an unknown state code
    """
    reader = _Reader(data)
    flags = reader.read_flags(FLAG_LINK_HANDLING_ALLOWED)
    identifier = reader.read_uuid()
    package_name = reader.read_required_string("package_name")
    user = reader.read_int32()
    host_to_state: dict[str, DomainState] = {}
    for _ in range(reader.read_count("host_to_state")):
        # Duplicates are detected on the normalized key
        host = normalize_host(reader.read_required_string("host"))
        if host in host_to_state:
            raise WireDecodeError(f"Duplicate host in record: {host}")
        host_to_state[host] = DomainState.from_code(reader.read_int32())
    reader.finish()
    return PackageUserState(
        identifier=identifier,
        package_name=package_name,
        user=user,
        link_handling_allowed=bool(flags & FLAG_LINK_HANDLING_ALLOWED),
        host_to_state=host_to_state,
    )


def encode_verification_request(request: VerificationRequest) -> bytes:
    writer = _Writer()
    writer.write_byte(0)
    writer.write_strings(sorted(request.package_names))
    return writer.to_bytes()


def decode_verification_request(data: bytes) -> VerificationRequest:
    reader = _Reader(data)
    reader.read_flags(0)
    package_names = reader.read_strings("package_names")
    reader.finish()
    return VerificationRequest(package_names)


def encode_geolocation_suggestion(suggestion: GeolocationSuggestion) -> bytes:
    writer = _Writer()
    zone_ids = suggestion.zone_ids
    writer.write_byte(FLAG_ZONE_IDS_PRESENT if zone_ids is not None else 0)
    if zone_ids is not None:
        writer.write_strings(zone_ids)
    writer.write_strings(suggestion.debug_info)
    return writer.to_bytes()


def decode_geolocation_suggestion(data: bytes) -> GeolocationSuggestion:
    reader = _Reader(data)
    flags = reader.read_flags(FLAG_ZONE_IDS_PRESENT)
    zone_ids = reader.read_strings("zone_ids") if flags & FLAG_ZONE_IDS_PRESENT else None
    debug_info = reader.read_strings("debug_info")
    reader.finish()
    suggestion = GeolocationSuggestion.create(zone_ids)
    suggestion.add_debug_info(*debug_info)
    return suggestion


__all__ = [
    "FLAG_LINK_HANDLING_ALLOWED",
    "FLAG_ZONE_IDS_PRESENT",
    "decode_geolocation_suggestion",
    "decode_package_user_state",
    "decode_verification_request",
    "encode_geolocation_suggestion",
    "encode_package_user_state",
    "encode_verification_request",
]
