from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

import requests
from requests.exceptions import RequestException

from models import ChatId, Reply
from server_config import BotSettings, mask_token

logger = logging.getLogger("telegram_webhook")


class TelegramApiError(RuntimeError):
    """Raised when a strict Bot API call fails."""


def method_url(api_root: str, token: str, method: str) -> str:
    return f"{api_root}/bot{token}/{method}"


class TelegramMessageSender:
    """Sends replies through the Bot API ``sendMessage`` method.

    Every failure is logged and swallowed: the webhook must be acknowledged
    regardless of whether the reply reached the chat. There are no retries.
    """

    def __init__(self, settings: BotSettings, session: Any = None) -> None:
        self.settings = settings
        self._http = session if session is not None else requests

    def send(self, chat_id: ChatId, text: str) -> Optional[requests.Response]:
        return self.send_reply(Reply(chat_id=chat_id, text=text))

    def send_reply(self, reply: Reply) -> Optional[requests.Response]:
        token = self.settings.token
        if not token:
            logger.error("Cannot send message: TELEGRAM_BOT_TOKEN is missing.")
            return None

        url = method_url(self.settings.api_root, token, "sendMessage")
        try:
            response = self._http.post(
                url,
                json=reply.to_payload(),
                timeout=self.settings.api_timeout,
            )
        except RequestException as exc:
            logger.error(
                "Network error while sending message to chat %s: %s",
                reply.chat_id,
                str(exc).replace(token, mask_token(token)),
            )
            return None

        if not response.ok:
            logger.error(
                "Telegram API error: status=%s body=%s",
                response.status_code,
                response.text,
            )
        else:
            logger.debug("Message delivered to chat %s", reply.chat_id)
        return response


def call_telegram(
    method: str,
    token: str,
    payload: Mapping[str, Any],
    *,
    api_root: str,
    verify: bool | str = True,
    timeout: Optional[float] = 10,
) -> Mapping[str, Any]:
    """Call a Bot API method and return the parsed result, raising on any failure."""

    endpoint = method_url(api_root, token, method)
    logger.info("Calling Telegram: %s", endpoint.replace(token, mask_token(token)))

    try:
        response = requests.post(
            endpoint,
            json=payload,
            timeout=timeout,
            verify=verify,
        )
        response.raise_for_status()
    except RequestException as exc:
        message = str(exc).replace(token, mask_token(token))
        raise TelegramApiError(f"Telegram API request failed: {message}") from exc

    try:
        parsed = response.json()
    except ValueError as exc:
        raise TelegramApiError("Telegram API returned invalid JSON") from exc

    if not isinstance(parsed, Mapping) or not parsed.get("ok", False):
        description = (
            parsed.get("description", "unknown error")
            if isinstance(parsed, Mapping)
            else "unknown error"
        )
        raise TelegramApiError(f"Telegram API reported an error: {description}")

    return parsed
