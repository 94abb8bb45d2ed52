"""
Console verification agent adapter - Implements VerificationAgent protocol.

This module provides a console-based implementation of the domain's
verification agent port, logging the packages to re-verify instead of
broadcasting them to a real agent.
"""

import logging

from src.domain.request import VerificationRequest

logger = logging.getLogger(__name__)


class ConsoleVerificationAgent:
    """
    Implements VerificationAgent protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - the real agent lives outside this service.
    """

    def send_verification_request(self, request: VerificationRequest) -> None:
        """
        Log the verification request (simulates the broadcast).

        Package names are logged sorted so output is stable.

        Args:
            request: Envelope holding the package names to re-verify
        """
        logger.info(
            "[VERIFICATION REQUEST] Packages: %s",
            ", ".join(sorted(request.package_names)),
        )
