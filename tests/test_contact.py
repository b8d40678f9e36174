from pathlib import Path

import pytest

from testimonials.core.errors import SubmissionFailure, ValidationFailure
from testimonials.db.outbox_repository import OutboxRepository
from testimonials.db.sqlite_client import SQLiteClient
from testimonials.db.store import StoreError
from testimonials.services.contact import ContactMessage, ContactService


class FailingTransport:
    def send(self, envelope):
        raise StoreError("outbox locked")


def _service(transport) -> ContactService:
    return ContactService(transport, recipient_name="Studio", recipient_email="hello@studio.test")


def test_valid_message_is_queued(tmp_path: Path) -> None:
    client = SQLiteClient(tmp_path / "outbox.db")
    client.initialize_schema()
    outbox = OutboxRepository(client)

    envelope = _service(outbox).send(
        ContactMessage(name=" Ada ", email="ada@example.com", message="Let's build something.")
    )

    assert envelope["from_name"] == "Ada"
    assert envelope["to_email"] == "hello@studio.test"
    pending = outbox.pending()
    assert len(pending) == 1
    assert pending[0]["message"] == "Let's build something."
    assert pending[0]["queued_at"].endswith("Z")

    assert outbox.delete_all() == 1
    assert outbox.pending() == []


@pytest.mark.parametrize(
    ("contact", "field", "message"),
    [
        (ContactMessage("", "a@b.co", "long enough text"), "name", "Name is required"),
        (ContactMessage("A", "a@b.co", "long enough text"), "name", "Name must be at least 2 characters"),
        (ContactMessage("Ada", "not-an-email", "long enough text"), "email", "Please enter a valid email address"),
        (ContactMessage("Ada", "a@b.co", "short"), "message", "Message must be at least 10 characters"),
        (ContactMessage("Ada", "a@b.co", "x" * 501), "message", "Message must be at most 500 characters"),
    ],
)
def test_invalid_fields_are_reported(contact: ContactMessage, field: str, message: str) -> None:
    with pytest.raises(ValidationFailure) as excinfo:
        _service(FailingTransport()).send(contact)

    assert excinfo.value.fields == (field,)
    assert excinfo.value.messages[field] == message


def test_transport_failure_becomes_submission_failure() -> None:
    with pytest.raises(SubmissionFailure):
        _service(FailingTransport()).send(
            ContactMessage(name="Ada", email="ada@example.com", message="Hello there, team!")
        )


def test_outbox_without_schema_raises_store_error() -> None:
    outbox = OutboxRepository(SQLiteClient(":memory:"))

    with pytest.raises(StoreError):
        outbox.pending()
    with pytest.raises(StoreError):
        outbox.delete_all()
