"""
Error handling tests for the signal relay.

Tests cover the error hierarchy, sink routing, and how the engine drops
malformed or forged leader messages without disturbing subscribers.
"""

import logging
import time
from unittest.mock import Mock

import pytest

from relay_app.bot import ChatEvent
from relay_app.errors import (
    AuthenticationFailureError,
    CommandRejectedError,
    DataQualityError,
    ErrorKind,
    ErrorSink,
    InvalidReferralError,
    InvalidRiskError,
    MalformedPayloadError,
    NotificationFailureError,
    NotSubscribedError,
    RelayError,
    StoreUnavailableError,
    SystemFailureError,
)
from relay_app.persistence import run_store_call


class TestErrorClassification:
    """Test error classification system."""

    def test_data_quality_error_hierarchy(self):
        malformed = MalformedPayloadError("bad json", raw_data="{x", expected_format="json object")
        assert isinstance(malformed, DataQualityError)
        assert malformed.recoverable is True
        assert malformed.kind is ErrorKind.MALFORMED_PAYLOAD
        assert malformed.raw_data == "{x"

        forged = AuthenticationFailureError("forged", symbol="BTCUSD", reason="signature mismatch")
        assert isinstance(forged, DataQualityError)
        assert forged.kind is ErrorKind.AUTHENTICATION_FAILURE
        assert forged.context == {}

    def test_system_failure_error_hierarchy(self):
        store_error = StoreUnavailableError("locked", operation="insert_signal", target="relay.db")
        assert isinstance(store_error, SystemFailureError)
        assert store_error.recoverable is False
        assert store_error.operation == "insert_signal"

        notify_error = NotificationFailureError("blocked", delivery_method="telegram", recipient="42")
        assert notify_error.kind is ErrorKind.NOTIFICATION_FAILURE
        assert notify_error.recipient == "42"

    def test_command_rejection_hierarchy(self):
        for error in (
            InvalidReferralError("bad ref", referral_code="X", identity="42"),
            InvalidRiskError("out of range", value="5", minimum=0.1, maximum=2.0),
            NotSubscribedError("subscribe first", identity="42"),
        ):
            assert isinstance(error, CommandRejectedError)
            assert isinstance(error, RelayError)
            assert error.recoverable is True

    def test_context_preserved(self):
        error = StoreUnavailableError("locked", context={"user_id": "42"})
        assert error.context == {"user_id": "42"}
        assert str(error) == "locked"


class TestErrorSink:
    """Every kind is logged at its fixed level and counted."""

    @pytest.mark.parametrize("error,level", [
        (InvalidReferralError("x"), logging.INFO),
        (InvalidRiskError("x"), logging.INFO),
        (NotSubscribedError("x"), logging.INFO),
        (MalformedPayloadError("x"), logging.WARNING),
        (AuthenticationFailureError("x"), logging.WARNING),
        (NotificationFailureError("x"), logging.WARNING),
        (StoreUnavailableError("x"), logging.ERROR),
    ])
    def test_log_level_per_kind(self, error, level):
        logger = Mock()
        sink = ErrorSink(logger=logger)

        sink.record(error)

        args, kwargs = logger.log.call_args
        assert args == (level, error.kind.value)
        assert kwargs["error"] == "x"

    def test_context_merged(self):
        logger = Mock()
        sink = ErrorSink(logger=logger)

        sink.record(StoreUnavailableError("x", context={"user_id": "1", "stage": "a"}), stage="b")

        _, kwargs = logger.log.call_args
        assert kwargs["user_id"] == "1"
        assert kwargs["stage"] == "b"

    def test_counts(self):
        sink = ErrorSink(logger=Mock())

        sink.record(AuthenticationFailureError("x"))
        sink.record(AuthenticationFailureError("y"))
        sink.record(StoreUnavailableError("z"))

        stats = sink.get_stats()
        assert stats["authentication_failure"] == 2
        assert stats["store_unavailable"] == 1
        assert stats["invalid_risk"] == 0
        assert set(stats) == {kind.value for kind in ErrorKind}

        sink.reset_stats()
        assert sink.count(ErrorKind.AUTHENTICATION_FAILURE) == 0


class TestStoreTimeout:

    @pytest.mark.asyncio
    async def test_slow_store_call_becomes_store_unavailable(self):
        def slow_query():
            time.sleep(0.5)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await run_store_call(slow_query, timeout=0.05)

        assert exc_info.value.operation == "slow_query"

    @pytest.mark.asyncio
    async def test_result_passed_through(self):
        assert await run_store_call(lambda a, b: a + b, 1, 2, timeout=1.0) == 3


class TestPipelineDropping:
    """Malformed and forged leader messages never reach subscribers."""

    @pytest.mark.asyncio
    async def test_malformed_payload_dropped(self, engine, store, notifier, sink):
        store.upsert_subscriber("A", "GODSEYE", 0.5)
        text = "New Trade Alert!\n<tg-spoiler>SIGNAL: {\"symbol\": BTC}</tg-spoiler>"

        reply = await engine.handle_update(
            {"message": {"from": {"id": 1, "username": "BasedPing_bot"}, "text": text}}
        )

        assert reply is None
        assert store.list_signals("A") == []
        assert notifier.sent == []
        assert sink.count(ErrorKind.MALFORMED_PAYLOAD) == 1

    @pytest.mark.asyncio
    async def test_forged_signal_dropped(self, engine, store, notifier, sink,
                                         alert_builder, btc_fields):
        store.upsert_subscriber("A", "GODSEYE", 0.5)
        forged = {**btc_fields, "size": 100}

        await engine.process_message(_leader_event(alert_builder(forged)))

        assert store.list_signals("A") == []
        assert notifier.sent == []
        assert sink.count(ErrorKind.AUTHENTICATION_FAILURE) == 1

    @pytest.mark.asyncio
    async def test_unsigned_signal_dropped(self, engine, store, sink, alert_builder, btc_fields):
        store.upsert_subscriber("A", "GODSEYE", 0.5)
        unsigned = {k: v for k, v in btc_fields.items() if k != "signature"}

        assert await engine.process_message(_leader_event(alert_builder(unsigned))) is None
        assert sink.count(ErrorKind.AUTHENTICATION_FAILURE) == 1


def _leader_event(text):
    return ChatEvent(sender_id="1", sender_username="BasedPing_bot", text=text)
