# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Telegram Bot API client for caregiver notifications."""

import logging
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)


class TelegramClient:
    """Sends text messages to one Telegram chat via the Bot API."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_url: str = "https://api.telegram.org",
        timeout_seconds: float = 10.0,
    ):
        """Initialize Telegram client.

        Args:
            bot_token: Bot token from BotFather
            chat_id: Target chat ID
            api_url: Bot API base URL
            timeout_seconds: Request timeout
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def send_message_url(self) -> str:
        return f"{self.api_url}/bot{self.bot_token}/sendMessage"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def send_message(self, text: str) -> bool:
        """Send a message to the configured chat.

        Args:
            text: Message text

        Returns:
            True if Telegram accepted the message
        """
        if not self.bot_token or not self.chat_id:
            logger.warning("Telegram bot token or chat ID not configured")
            return False

        payload = {"chat_id": self.chat_id, "text": text}

        try:
            session = await self._get_session()
            async with session.post(self.send_message_url, json=payload) as resp:
                if resp.status == 200:
                    logger.info(f'Notification sent to Telegram: "{text}"')
                    return True
                body = await resp.text()
                logger.error(f"Telegram API error {resp.status}: {body}")
                return False
        except Exception as e:
            logger.error(f"Telegram request failed: {e}")
            return False
