from __future__ import annotations


import json
import logging
from collections.abc import Callable, Mapping
from logging import Logger
from typing import Any, Protocol

from models import ChatId, IncomingMessage, WebhookResponse
from server_config import BotSettings
from texts import ReplyTexts, load_texts

METHOD_NOT_ALLOWED_BODY = "Method Not Allowed. Telegram webhooks must be POST requests."
MISCONFIGURED_BODY = "Server Misconfigured: Missing Bot Token."
OK_BODY = "OK"
ERROR_ACK_BODY = "Error encountered but acknowledged successfully."


class MessageSender(Protocol):
    def send(self, chat_id: ChatId, text: str) -> Any: ...


class ReplyRules:

    """Подбирает текст ответа по фиксированным правилам фильтра."""

    def __init__(self, texts: ReplyTexts | Mapping[str, str] | None = None) -> None:
        if texts is None:
            texts = load_texts()
        elif not isinstance(texts, ReplyTexts):
            texts = ReplyTexts.from_mapping(texts)

        self.texts = texts
        # order matters: the first matching rule wins
        self._rules: list[tuple[Callable[[str], bool], Callable[[str], str]]] = [
            (self._is_start_command, self._start_reply),
            (self._mentions_greeting, self._filter_reply),
        ]

    def reply_for(self, text: str) -> str:
        """Возвращает текст ответа; сопоставление идёт по тексту в нижнем регистре."""

        lowered = text.lower()
        for matches, build in self._rules:
            if matches(lowered):
                return build(text)
        return self.texts.render("fallback_template", text)

    @staticmethod
    def _is_start_command(lowered: str) -> bool:
        return lowered.startswith("/start")

    @staticmethod
    def _mentions_greeting(lowered: str) -> bool:
        # substring match, so "history" counts as "hi"
        return "hello" in lowered or "hi" in lowered

    def _start_reply(self, text: str) -> str:
        return self.texts.start_text

    def _filter_reply(self, text: str) -> str:
        return self.texts.render("filter_template", text)


class TelegramWebhookHandler:

    """Обрабатывает входящие обновления Telegram, полученные через вебхук.

    Вебхук подтверждается кодом 200 всегда, кроме неверного HTTP-метода (405)
    и отсутствующего токена (500), чтобы Telegram не повторял доставку.
    """

    def __init__(
        self,
        settings: BotSettings,
        sender: MessageSender,
        rules: ReplyRules | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.settings = settings
        self.sender = sender
        self.rules = rules or ReplyRules(load_texts(settings.texts_path))
        self.logger: Logger = logger or logging.getLogger("telegram_webhook")

    def handle(self, http_method: str, raw_body: str | bytes | None) -> WebhookResponse:
        """Обрабатывает один вызов вебхука и возвращает ответ для Telegram."""

        if http_method != "POST":
            self.logger.debug("handle: rejected method %s", http_method)
            return WebhookResponse(405, METHOD_NOT_ALLOWED_BODY)

        if not self.settings.has_token:
            self.logger.critical("TELEGRAM_BOT_TOKEN is missing on execution.")
            return WebhookResponse(500, MISCONFIGURED_BODY)

        try:
            self._process(raw_body)
        except Exception:
            self.logger.exception("Error processing update")
            return WebhookResponse(200, ERROR_ACK_BODY)

        return WebhookResponse(200, OK_BODY)

    def _process(self, raw_body: str | bytes | None) -> None:
        update = json.loads(raw_body or "")
        message = IncomingMessage.from_update(update)
        if message is None:
            self.logger.debug("handle: update without message, nothing to do")
            return

        reply_text = self.reply_text_for(message)
        self.logger.info("Replying to chat %s", message.chat_id)
        self.sender.send(message.chat_id, reply_text)

    def reply_text_for(self, message: IncomingMessage) -> str:
        return self.rules.reply_for(message.text)


def configure_logging(level_name: str) -> Logger:
    """Настраивает логгер вебхука; неизвестный уровень заменяется на INFO."""

    logging.basicConfig()
    logger = logging.getLogger("telegram_webhook")
    level = logging.getLevelName(level_name.upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)
    return logger
