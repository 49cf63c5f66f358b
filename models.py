from __future__ import annotations

"""Структуры данных одного вызова вебхука: входящее сообщение и ответ."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional

ChatId = int | str

DEFAULT_PARSE_MODE = "Markdown"


class MalformedUpdateError(ValueError):
    """Обновление Telegram имеет неожиданную структуру."""


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    """Текстовое сообщение, извлечённое из обновления Telegram."""

    chat_id: ChatId
    text: str = ""

    @classmethod
    def from_update(cls, update: Any) -> Optional["IncomingMessage"]:
        """Возвращает сообщение из обновления или ``None``, если сообщения нет.

        Raises:
            MalformedUpdateError: если обновление или сообщение не той формы.
        """

        if not isinstance(update, Mapping):
            raise MalformedUpdateError(
                f"update must be a JSON object, got {type(update).__name__}"
            )

        message = update.get("message")
        if message is None:
            return None
        if not isinstance(message, Mapping):
            raise MalformedUpdateError("message must be a JSON object")

        chat = message.get("chat")
        if not isinstance(chat, Mapping):
            raise MalformedUpdateError("message.chat is missing")

        chat_id = chat.get("id")
        # bool is an int subclass
        if isinstance(chat_id, bool) or not isinstance(chat_id, (int, str)):
            raise MalformedUpdateError("message.chat.id is missing")

        text = message.get("text")
        if text is None:
            text = ""
        elif not isinstance(text, str):
            raise MalformedUpdateError("message.text must be a string")

        return cls(chat_id=chat_id, text=text)


@dataclass(frozen=True, slots=True)
class Reply:
    """Ответ, который бот отправляет в чат через sendMessage."""

    chat_id: ChatId
    text: str
    parse_mode: Optional[str] = DEFAULT_PARSE_MODE

    def __post_init__(self) -> None:
        # bool is an int subclass
        if isinstance(self.chat_id, bool) or not isinstance(self.chat_id, (int, str)):
            raise ValueError(f"reply needs a chat id, got {self.chat_id!r}")

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"chat_id": self.chat_id, "text": self.text}
        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode
        return payload


@dataclass(frozen=True, slots=True)
class WebhookResponse:
    """HTTP-ответ, который возвращается вызывающей стороне вебхука."""

    status_code: int
    body: str
