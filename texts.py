from __future__ import annotations

"""Тексты ответов бота и их загрузка из JSON."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReplyTexts:
    """Тексты ответов; шаблоны фильтра и запасного ответа принимают ``{text}``."""

    start_text: str = (
        "Hello! I am an auto-filter bot developed by *Kaustav Ray*. 🤖\n\n"
        'Try sending me the word "hello" or "Hi" to test the filter.'
    )
    filter_template: str = (
        '👋 Filter Activated! I saw you said "{text}". This is my automated response.'
    )
    fallback_template: str = (
        'I received your message: "{text}". I currently only know how to respond '
        "to /start and messages containing 'hello' or 'hi'."
    )

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any]) -> "ReplyTexts":
        known = {field.name for field in fields(cls)}
        overrides = {
            key: value
            for key, value in data.items()
            if key in known and isinstance(value, str)
        }
        return cls(**overrides)

    def render(self, template_name: str, text: str) -> str:
        """Подставляет текст пользователя; сломанный шаблон заменяется дефолтным."""

        template = getattr(self, template_name)
        try:
            return template.format(text=text)
        except (KeyError, IndexError, ValueError):
            logger.warning("Broken template %r, using the default one", template_name)
            return getattr(DEFAULT_TEXTS, template_name).format(text=text)


DEFAULT_TEXTS = ReplyTexts()


def load_texts(path: Path | str | None = None) -> ReplyTexts:
    """Читает переопределения текстов; при любой ошибке остаются дефолты."""

    if path is None:
        path = Path(__file__).resolve().with_name("texts.json")
    path = Path(path).expanduser()

    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return DEFAULT_TEXTS
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot read texts from %s: %s", path, exc)
        return DEFAULT_TEXTS

    if not isinstance(loaded, dict):
        logger.error("Texts file %s must contain a JSON object", path)
        return DEFAULT_TEXTS

    return ReplyTexts.from_mapping(loaded)
