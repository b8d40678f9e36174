"""Contact form validation and hand-off to an outbound transport.

Updates:
    v0.1.0 - 2025-11-13 - Added field rules and envelope construction.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from ..core.errors import SubmissionFailure, ValidationFailure
from ..db.store import StoreError

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MIN_MESSAGE_LENGTH = 10
MAX_MESSAGE_LENGTH = 500
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class MessageTransport(Protocol):
    def send(self, envelope: Mapping[str, Any]) -> Any:
        ...


@dataclass
class ContactMessage:
    name: str = ""
    email: str = ""
    message: str = ""

    def errors(self) -> dict[str, str]:
        """Return a message per invalid field, empty when the form is valid."""

        errors: dict[str, str] = {}

        name = self.name.strip()
        if not name:
            errors["name"] = "Name is required"
        elif len(name) < MIN_NAME_LENGTH:
            errors["name"] = f"Name must be at least {MIN_NAME_LENGTH} characters"
        elif len(name) > MAX_NAME_LENGTH:
            errors["name"] = f"Name must be at most {MAX_NAME_LENGTH} characters"

        email = self.email.strip()
        if not email:
            errors["email"] = "Email is required"
        elif not EMAIL_PATTERN.match(email):
            errors["email"] = "Please enter a valid email address"

        message = self.message.strip()
        if not message:
            errors["message"] = "Message is required"
        elif len(message) < MIN_MESSAGE_LENGTH:
            errors["message"] = f"Message must be at least {MIN_MESSAGE_LENGTH} characters"
        elif len(message) > MAX_MESSAGE_LENGTH:
            errors["message"] = f"Message must be at most {MAX_MESSAGE_LENGTH} characters"

        return errors


class ContactService:
    """Validates contact messages and passes them to the configured transport."""

    def __init__(
        self,
        transport: MessageTransport,
        *,
        recipient_name: str,
        recipient_email: str,
    ) -> None:
        self._transport = transport
        self._recipient_name = recipient_name
        self._recipient_email = recipient_email

    def send(self, contact: ContactMessage) -> dict[str, str]:
        """Validate ``contact`` and hand the envelope to the transport.

        Args:
            contact (ContactMessage): Form values supplied by the visitor.

        Returns:
            dict[str, str]: The envelope that was handed off.

        Raises:
            ValidationFailure: If any field breaks the form rules.
            SubmissionFailure: If the transport rejects the envelope.
        """

        errors = contact.errors()
        if errors:
            raise ValidationFailure(errors.keys(), errors)

        envelope = {
            "from_name": contact.name.strip(),
            "from_email": contact.email.strip(),
            "to_name": self._recipient_name,
            "to_email": self._recipient_email,
            "message": contact.message.strip(),
        }
        try:
            self._transport.send(envelope)
        except StoreError as exc:
            logger.warning("contact_send_failed", extra={"error": str(exc)})
            raise SubmissionFailure(f"Failed to send message: {exc}") from exc

        logger.info("contact_queued", extra={"from_email": envelope["from_email"]})
        return envelope
