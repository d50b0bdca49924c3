"""Tests for notification delivery mechanisms."""

import asyncio

import aiohttp
import orjson
import pytest

from relay_app.config.defaults import NotificationParams
from relay_app.delivery import (
    BaseNotifier,
    DeliveryStatus,
    NotificationPermanentError,
    NotificationRetryableError,
    StdoutNotifier,
    TelegramNotifier,
    create_notifier,
)


class ScriptedNotifier(BaseNotifier):
    """Notifier that plays back a list of outcomes, one per attempt."""

    def __init__(self, outcomes, **kwargs):
        kwargs.setdefault("retry_delay_seconds", 0)
        super().__init__("scripted", **kwargs)
        self.outcomes = list(outcomes)
        self.attempts = 0

    async def send_text(self, chat_id, text):
        self.attempts += 1
        outcome = self.outcomes.pop(0)
        if outcome == "hang":
            await asyncio.sleep(10)
        elif isinstance(outcome, Exception):
            raise outcome

    async def health_check(self):
        return True


class FakeResponse:

    def __init__(self, status, body=""):
        self.status = status
        self._body = body

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession, recording requests."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def _next(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    async def close(self):
        self.closed = True


class TestBaseNotifier:

    @pytest.mark.asyncio
    async def test_success(self):
        notifier = ScriptedNotifier([None])

        result = await notifier.deliver("1", "hi")

        assert result.ok
        assert result.attempt_count == 1
        assert notifier.get_stats()["delivery_count"] == 1

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        notifier = ScriptedNotifier([NotificationRetryableError("503"), None], retry_attempts=1)

        result = await notifier.deliver("1", "hi")

        assert result.status == DeliveryStatus.SUCCESS
        assert result.attempt_count == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        notifier = ScriptedNotifier([NotificationRetryableError("503")] * 3, retry_attempts=2)

        result = await notifier.deliver("1", "hi")

        assert result.status == DeliveryStatus.DEAD_LETTER
        assert result.attempt_count == 3
        assert "503" in result.message
        assert notifier.get_stats()["error_count"] == 1

    @pytest.mark.asyncio
    async def test_permanent_error_not_retried(self):
        notifier = ScriptedNotifier([NotificationPermanentError("chat not found")], retry_attempts=3)

        result = await notifier.deliver("1", "hi")

        assert result.status == DeliveryStatus.FAILED
        assert notifier.attempts == 1
        assert isinstance(result.error, NotificationPermanentError)

    @pytest.mark.asyncio
    async def test_attempt_timeout(self):
        notifier = ScriptedNotifier(["hang"], timeout_seconds=0.05, retry_attempts=0)

        result = await notifier.deliver("1", "hi")

        assert result.status == DeliveryStatus.DEAD_LETTER
        assert "Timed out" in result.message

    @pytest.mark.asyncio
    async def test_unknown_error_treated_as_retryable(self):
        notifier = ScriptedNotifier([RuntimeError("boom"), None], retry_attempts=1)

        assert (await notifier.deliver("1", "hi")).ok

    @pytest.mark.asyncio
    async def test_reset_stats(self):
        notifier = ScriptedNotifier([None])
        await notifier.deliver("1", "hi")

        notifier.reset_stats()

        assert notifier.get_stats()["delivery_count"] == 0
        assert notifier.get_stats()["success_rate"] == 0.0


class TestTelegramNotifier:

    def make_notifier(self, responses, **kwargs):
        kwargs.setdefault("retry_attempts", 0)
        notifier = TelegramNotifier("123:abc", api_base_url="https://api.example/", **kwargs)
        notifier._session = FakeSession(responses)
        return notifier

    def test_token_required(self):
        with pytest.raises(NotificationPermanentError):
            TelegramNotifier("")

    @pytest.mark.asyncio
    async def test_send_message_request(self):
        notifier = self.make_notifier([FakeResponse(200)])

        result = await notifier.deliver("42", "Auto-Signal: {}")

        assert result.ok
        method, url, kwargs = notifier._session.requests[0]
        assert method == "POST"
        assert url == "https://api.example/bot123:abc/sendMessage"
        assert kwargs["json"]["chat_id"] == "42"
        assert kwargs["json"]["text"] == "Auto-Signal: {}"

    @pytest.mark.asyncio
    async def test_client_error_rejected_permanently(self):
        notifier = self.make_notifier([FakeResponse(400, "chat not found")], retry_attempts=2)

        result = await notifier.deliver("42", "hi")

        assert result.status == DeliveryStatus.FAILED
        assert "HTTP 400" in result.message
        assert len(notifier._session.requests) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 502])
    async def test_rate_limit_and_server_errors_retried(self, status):
        notifier = self.make_notifier([FakeResponse(status), FakeResponse(200)],
                                      retry_attempts=1, retry_delay_seconds=0)

        result = await notifier.deliver("42", "hi")

        assert result.ok
        assert result.attempt_count == 2

    @pytest.mark.asyncio
    async def test_network_error_retryable(self):
        notifier = self.make_notifier([aiohttp.ClientConnectionError("reset")])

        with pytest.raises(NotificationRetryableError):
            await notifier.send_text("42", "hi")

    @pytest.mark.asyncio
    async def test_health_check(self):
        notifier = self.make_notifier([FakeResponse(200), FakeResponse(401)])

        assert await notifier.health_check() is True
        assert await notifier.health_check() is False
        assert notifier._session.requests[0][1].endswith("/getMe")

    @pytest.mark.asyncio
    async def test_close(self):
        notifier = self.make_notifier([])
        session = notifier._session

        await notifier.close()

        assert session.closed is True
        assert notifier._session is None


class TestStdoutNotifier:

    @pytest.mark.asyncio
    async def test_writes_json_line(self, capsys):
        notifier = StdoutNotifier()

        result = await notifier.deliver("42", "Subscribed")

        assert result.ok
        line = orjson.loads(capsys.readouterr().out.strip())
        assert line["chat_id"] == "42"
        assert line["text"] == "Subscribed"


class TestCreateNotifier:

    def test_stdout(self):
        notifier = create_notifier(NotificationParams(method="stdout", retry_attempts=3))
        assert isinstance(notifier, StdoutNotifier)
        assert notifier.retry_attempts == 3

    def test_telegram(self):
        notifier = create_notifier(NotificationParams(method="telegram", bot_token="1:x"))
        assert isinstance(notifier, TelegramNotifier)

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            create_notifier(NotificationParams(method="carrier-pigeon"))
