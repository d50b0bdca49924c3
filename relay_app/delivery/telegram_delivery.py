"""Telegram Bot API notification mechanism."""

from typing import Optional

import aiohttp

from .base import (
    BaseNotifier,
    NotificationPermanentError,
    NotificationRetryableError,
)


class TelegramNotifier(BaseNotifier):
    """Sends plain-text messages through the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        api_base_url: str = "https://api.telegram.org",
        name: str = "telegram",
        **kwargs
    ):
        super().__init__(name, **kwargs)
        if not bot_token:
            raise NotificationPermanentError("Telegram bot token is required")

        self._api_url = f"{api_base_url.rstrip('/')}/bot{bot_token}"
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send_text(self, chat_id: str, text: str) -> None:
        """Send a message via sendMessage."""
        session = await self._get_session()

        payload = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }

        try:
            async with session.post(f"{self._api_url}/sendMessage", json=payload) as response:
                if response.status == 200:
                    self.logger.debug("Message delivered", chat_id=chat_id)
                    return

                body = await response.text()
                error_msg = f"HTTP {response.status}: {body[:200]}"
                self.logger.warning(
                    "Telegram API error",
                    chat_id=chat_id,
                    response_code=response.status,
                    response_data=body[:200]
                )

                # Rate limits and server errors are retryable
                if response.status == 429 or response.status >= 500:
                    raise NotificationRetryableError(error_msg)
                raise NotificationPermanentError(error_msg)

        except aiohttp.ClientError as e:
            raise NotificationRetryableError(f"Network error: {str(e)}") from e

    async def health_check(self) -> bool:
        """Check the bot token against getMe."""
        try:
            session = await self._get_session()
            async with session.get(f"{self._api_url}/getMe") as response:
                return response.status == 200

        except aiohttp.ClientError as e:
            self.logger.warning("Health check failed", delivery_name=self.name, error=str(e))
            return False
