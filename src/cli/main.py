"""
Command-line entry point - Inject a geolocation time zone suggestion.

Usage:
    linkgate-suggest --zone_ids {UNCERTAIN|EMPTY|<Olson ID>+}

Prints the parsed suggestion on success. On a grammar violation prints the
error and the option help to stderr and exits with status 2.
"""

import logging
import sys
from collections.abc import Sequence

from src.domain.exceptions import ArgumentParseError
from src.domain.geolocation import parse_command_line_args, print_command_line_opts

logger = logging.getLogger(__name__)


def run(argv: Sequence[str]) -> int:
    try:
        suggestion = parse_command_line_args(argv)
    except ArgumentParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        print_command_line_opts(sys.stderr)
        return 2

    logger.debug("Injected suggestion: %s", suggestion.describe())
    print(suggestion.describe())
    return 0


def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
