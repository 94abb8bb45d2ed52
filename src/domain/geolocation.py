"""
Geolocation time zone suggestion - Value object with a tri-state zone list.

zone_ids has three meanings:
- non-empty tuple: suggested zone IDs, e.g. ("America/Phoenix", "America/Denver").
  Usually a single ID; several mean the location is near a zone border. The
  first element is the default in the absence of other evidence.
- empty tuple: the location has no time zone (oceans, disputed areas). This
  is a strong signal; receivers need not look at other sources.
- None: the source is un-opinionated and withdraws any previous suggestion,
  e.g. because the location is no longer known accurately enough.

debug_info records why the suggestion exists. It is shown by describe() but
never takes part in equality or hashing.
"""

import argparse
import sys
from collections.abc import Sequence
from typing import TextIO

from .exceptions import ArgumentParseError

ZONE_IDS_UNCERTAIN = "UNCERTAIN"
ZONE_IDS_EMPTY = "EMPTY"
COMMAND_LINE_DEBUG_INFO = "Command line injection"


class GeolocationSuggestion:
    """A time zone suggestion from a geolocation source."""

    __slots__ = ("_zone_ids", "_debug_info")

    def __init__(self, zone_ids: Sequence[str] | None) -> None:
        self._zone_ids = None if zone_ids is None else tuple(zone_ids)
        self._debug_info: list[str] = []

    @classmethod
    def create(cls, zone_ids: Sequence[str] | None) -> "GeolocationSuggestion":
        return cls(zone_ids)

    @property
    def zone_ids(self) -> tuple[str, ...] | None:
        return self._zone_ids

    @property
    def debug_info(self) -> tuple[str, ...]:
        return tuple(self._debug_info)

    @property
    def is_opinionated(self) -> bool:
        return self._zone_ids is not None

    def add_debug_info(self, *entries: str) -> None:
        """Append debugging information; ignored by equality and hashing."""
        self._debug_info.extend(entries)

    def describe(self) -> str:
        zone_ids = None if self._zone_ids is None else list(self._zone_ids)
        return f"GeolocationSuggestion{{zone_ids={zone_ids}, debug_info={self._debug_info}}}"

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, GeolocationSuggestion):
            return NotImplemented
        return self._zone_ids == other._zone_ids

    def __hash__(self) -> int:
        return hash(self._zone_ids)

    def __repr__(self) -> str:
        return self.describe()


class _SuggestionArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ArgumentParseError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _SuggestionArgumentParser(prog="linkgate-suggest", add_help=False, allow_abbrev=False)
    parser.add_argument(
        "--zone_ids",
        required=True,
        metavar="{UNCERTAIN|EMPTY|<Olson ID>+}",
    )
    return parser


def parse_zone_ids_arg(zone_ids_string: str) -> tuple[str, ...] | None:
    """
    Parse the --zone_ids value.

    UNCERTAIN maps to None, EMPTY to an empty tuple. Anything else is split
    on commas; empty tokens are dropped, others are kept verbatim.
    """
    if zone_ids_string == ZONE_IDS_UNCERTAIN:
        return None
    if zone_ids_string == ZONE_IDS_EMPTY:
        return ()
    return tuple(token for token in zone_ids_string.split(",") if token)


def parse_command_line_args(args: Sequence[str]) -> GeolocationSuggestion:
    """
    Build a suggestion from command-line arguments.

    Raises:
        ArgumentParseError: On an unknown option or a missing --zone_ids value
    """
    for arg in args:
        if arg.startswith("-") and arg.split("=", 1)[0] != "--zone_ids":
            raise ArgumentParseError(f"Unknown option: {arg}")
    namespace, extras = _build_parser().parse_known_args(list(args))
    if extras:
        raise ArgumentParseError(f"Unknown option: {extras[0]}")

    suggestion = GeolocationSuggestion.create(parse_zone_ids_arg(namespace.zone_ids))
    suggestion.add_debug_info(COMMAND_LINE_DEBUG_INFO)
    return suggestion


def print_command_line_opts(file: TextIO | None = None) -> None:
    """Write the command-line grammar help text."""
    out = file if file is not None else sys.stdout
    print("Geolocation suggestion options:", file=out)
    print(f"  --zone_ids {{{ZONE_IDS_UNCERTAIN}|{ZONE_IDS_EMPTY}|<Olson ID>+}}", file=out)
    print(file=out)
    print(f"See {GeolocationSuggestion.__module__}.{GeolocationSuggestion.__name__} for more information", file=out)
