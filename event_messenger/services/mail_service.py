"""
Outbound mail transports.

``MailTransport`` is the interface the notifier depends on; ``SMTPTransport``
delivers through an SMTP server configured in ``settings`` (STARTTLS on the
configured port, or SMTP over SSL when ``SMTP_USE_SSL`` is set).
"""

from __future__ import annotations

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Optional

from event_messenger.core.config import Settings, settings as default_settings
from event_messenger.core.errors import DeliveryError

logger = logging.getLogger(__name__)


class MailTransport(ABC):
    """Sends one HTML email"""

    @abstractmethod
    def send(self, to_address: str, subject: str, html: str) -> None:
        """Deliver ``html`` to ``to_address``.

        Raises:
            DeliveryError: the message was not accepted for delivery
        """
        raise NotImplementedError


class SMTPTransport(MailTransport):
    """SMTP implementation of the ``MailTransport`` interface."""

    def __init__(self, config: Optional[Settings] = None) -> None:
        config = config or default_settings
        self._host = config.SMTP_SERVER
        self._port = config.SMTP_PORT
        self._username = config.SMTP_USERNAME
        self._password = config.SMTP_PASSWORD
        self._from_email = config.SMTP_FROM_EMAIL or config.SMTP_USERNAME
        self._use_ssl = config.SMTP_USE_SSL
        self._timeout = config.SMTP_TIMEOUT

    def _build_message(self, to_address: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._from_email
        msg["To"] = to_address
        msg.set_content(html, subtype="html", charset="utf-8")
        return msg

    def send(self, to_address: str, subject: str, html: str) -> None:
        if not to_address:
            raise DeliveryError("No recipient address")

        msg = self._build_message(to_address, subject, html)

        try:
            if self._use_ssl:
                smtp_conn: smtplib.SMTP = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
            else:
                smtp_conn = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
            with smtp_conn as smtp:
                smtp.ehlo()
                if not self._use_ssl:
                    smtp.starttls()
                    smtp.ehlo()
                if self._username and self._password:
                    smtp.login(self._username, self._password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(
                f"Failed to send email via SMTP server at {self._host}:{self._port}: {exc}"
            ) from exc

        logger.info(f"Email sent successfully to: {to_address}")
