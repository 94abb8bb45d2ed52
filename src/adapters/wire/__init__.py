"""Wire adapters - Binary encoding of domain records."""

from .codec import (
    decode_geolocation_suggestion,
    decode_package_user_state,
    decode_verification_request,
    encode_geolocation_suggestion,
    encode_package_user_state,
    encode_verification_request,
)

__all__ = [
    "decode_geolocation_suggestion",
    "decode_package_user_state",
    "decode_verification_request",
    "encode_geolocation_suggestion",
    "encode_package_user_state",
    "encode_verification_request",
]
