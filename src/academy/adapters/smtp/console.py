"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging verification links for demo purposes.
"""

import logging

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = "[바이브코딩 아카데미] 이메일 인증을 완료해주세요"


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - logs verification links.
    """

    def send_verification_email(self, email: str, name: str, link: str) -> None:
        """
        Log the verification link (simulates email delivery).

        In production, this would be replaced with an SMTP adapter.
        The link is logged at INFO level to be visible in container logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            name: Recipient display name
            link: Verification URL carrying the token
        """
        logger.info(
            "[VERIFICATION] To: %s (%s) Subject: %s Link: %s",
            email,
            name,
            VERIFICATION_SUBJECT,
            link,
        )
