from __future__ import annotations

import asyncio
from typing import Any

import pytest
from typer.testing import CliRunner

import testimonials.cli as cli
from testimonials.cli.commands import reviews as review_commands
from testimonials.db.outbox_repository import OutboxRepository
from testimonials.db.sqlite_client import SQLiteClient
from testimonials.db.store import StoreError
from tests.helpers.cli import make_cli_runtime, mute_console, patch_runtime
from tests.helpers.stores import InMemoryReviewStore, make_record


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def session(monkeypatch: pytest.MonkeyPatch):
    store = InMemoryReviewStore(records=[make_record(i) for i in range(1, 8)])
    runtime, state, store, transport = make_cli_runtime(store)
    patch_runtime(monkeypatch, runtime, state)
    printed = mute_console(monkeypatch)
    return state, store, transport, printed


def test_show_records_load_details(runner: CliRunner, session) -> None:
    state, _store, _transport, printed = session

    result = runner.invoke(cli.app, ["show"])

    assert result.exit_code == 0
    assert state.cursor == 0
    assert state.last_source == "remote"
    assert state.last_count == 7
    assert printed


def test_next_and_prev_move_persisted_cursor(runner: CliRunner, session) -> None:
    state, _store, _transport, printed = session

    assert runner.invoke(cli.app, ["next"]).exit_code == 0
    assert state.cursor == 3
    assert runner.invoke(cli.app, ["next"]).exit_code == 0
    assert state.cursor == 4

    printed.clear()
    assert runner.invoke(cli.app, ["next"]).exit_code == 0
    assert state.cursor == 4
    assert "[dim]Already at the last group.[/]" in printed

    runner.invoke(cli.app, ["prev"])
    runner.invoke(cli.app, ["prev"])
    printed.clear()
    runner.invoke(cli.app, ["prev"])
    assert state.cursor == 0
    assert "[dim]Already at the first group.[/]" in printed


def test_show_page_is_clamped(runner: CliRunner, session) -> None:
    state, *_ = session

    result = runner.invoke(cli.app, ["show", "--page", "3"])

    assert result.exit_code == 0
    assert state.cursor == 4


def test_show_reports_fallback(runner: CliRunner, monkeypatch: pytest.MonkeyPatch, fallback_records) -> None:
    store = InMemoryReviewStore(query_error=StoreError("offline"))
    runtime, state, _store, _transport = make_cli_runtime(store, fallback_records=fallback_records)
    patch_runtime(monkeypatch, runtime, state)
    printed = mute_console(monkeypatch)

    result = runner.invoke(cli.app, ["show"])

    assert result.exit_code == 0
    assert state.last_source == "fallback"
    assert "[yellow]Store unavailable; showing bundled testimonials.[/]" in printed


def test_submit_inserts_review(runner: CliRunner, session) -> None:
    _state, store, _transport, _printed = session

    result = runner.invoke(
        cli.app, ["submit", "--name", "Ada", "--review", "Excellent work", "--rating", "4"]
    )

    assert result.exit_code == 0
    assert store.inserted == [
        {"name": "Ada", "position": "Client", "review": "Excellent work", "rating": 4, "approved": True}
    ]


def test_submit_rejects_blank_name(runner: CliRunner, session) -> None:
    _state, store, _transport, _printed = session

    result = runner.invoke(cli.app, ["submit", "--name", "  ", "--review", "Excellent work"])

    assert result.exit_code == 1
    assert store.inserted == []


def test_submit_reports_store_failure(runner: CliRunner, session) -> None:
    _state, store, _transport, printed = session
    store.insert_error = StoreError("HTTP 503")

    result = runner.invoke(cli.app, ["submit", "--name", "Ada", "--review", "Excellent work"])

    assert result.exit_code == 1
    assert any("Failed to submit testimonial" in str(item) for item in printed)


def test_contact_queues_message(runner: CliRunner, session) -> None:
    _state, _store, transport, _printed = session

    result = runner.invoke(
        cli.app,
        ["contact", "--name", "Ada", "--email", "ada@example.com", "--message", "Hello there, studio!"],
    )

    assert result.exit_code == 0
    assert transport.sent[0]["to_email"] == "hello@studio.test"


def test_contact_rejects_invalid_email(runner: CliRunner, session) -> None:
    _state, _store, transport, _printed = session

    result = runner.invoke(
        cli.app, ["contact", "--name", "Ada", "--email", "nope", "--message", "Hello there, studio!"]
    )

    assert result.exit_code == 1
    assert transport.sent == []


class ArrivingStore(InMemoryReviewStore):
    """Store that pushes one new review shortly after a subscription opens."""

    def subscribe_insertions(self, callback, *, on_closed=None):
        subscription = super().subscribe_insertions(callback, on_closed=on_closed)
        asyncio.get_running_loop().call_later(0.01, self.deliver, make_record(99, name="Late Arrival"))
        return subscription


class DroppingStore(InMemoryReviewStore):
    def subscribe_insertions(self, callback, *, on_closed=None):
        subscription = super().subscribe_insertions(callback, on_closed=on_closed)
        asyncio.get_running_loop().call_soon(self.drop_channel)
        return subscription


def _watch_session(monkeypatch: pytest.MonkeyPatch, store: InMemoryReviewStore) -> list[Any]:
    runtime, state, _store, _transport = make_cli_runtime(store)
    patch_runtime(monkeypatch, runtime, state)
    monkeypatch.setattr(review_commands, "WATCH_TICK_SECONDS", 0.01)
    return mute_console(monkeypatch)


def test_watch_prints_arrivals(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    store = ArrivingStore(records=[make_record(1)])
    printed = _watch_session(monkeypatch, store)

    result = runner.invoke(cli.app, ["watch", "--duration", "0.1"])

    assert result.exit_code == 0
    assert any(getattr(item, "title", None) == "New testimonial" for item in printed)
    assert store.unsubscribe_calls == 1


def test_watch_exits_when_channel_drops(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    store = DroppingStore(records=[make_record(1)])
    printed = _watch_session(monkeypatch, store)

    result = runner.invoke(cli.app, ["watch", "--duration", "1"])

    assert result.exit_code == 1
    assert any("Live updates stopped" in str(item) for item in printed)


@pytest.fixture()
def outbox_session(monkeypatch: pytest.MonkeyPatch, tmp_path):
    client = SQLiteClient(tmp_path / "outbox.db")
    client.initialize_schema()
    outbox = OutboxRepository(client)
    runtime, state, _store, _transport = make_cli_runtime(outbox=outbox)
    patch_runtime(monkeypatch, runtime, state)
    return outbox, mute_console(monkeypatch)


def test_outbox_lists_and_clears_queued_messages(runner: CliRunner, outbox_session) -> None:
    outbox, printed = outbox_session
    for name in ("Ada", "Grace"):
        result = runner.invoke(
            cli.app,
            ["contact", "--name", name, "--email", f"{name.lower()}@example.com", "--message", "Hello there, studio!"],
        )
        assert result.exit_code == 0

    printed.clear()
    result = runner.invoke(cli.app, ["outbox", "--limit", "1"])

    assert result.exit_code == 0
    table = printed[-1]
    assert table.title == "Contact outbox"
    assert table.row_count == 1

    result = runner.invoke(cli.app, ["outbox", "--clear"])

    assert result.exit_code == 0
    assert "Removed 2 queued message(s)." in str(printed[-1])
    assert outbox.pending() == []


def test_outbox_without_repository_fails(runner: CliRunner, session) -> None:
    _state, _store, _transport, printed = session

    result = runner.invoke(cli.app, ["outbox"])

    assert result.exit_code == 1
    assert any("No contact outbox" in str(item) for item in printed)
