from __future__ import annotations

"""Утилита для регистрации URL вебхука бота через setWebhook."""

import argparse
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from server_config import BotSettings, load_env_file
from telegram_client import TelegramApiError, call_telegram

_INSECURE_ENV = "TELEGRAM_WEBHOOK_INSECURE"
_CA_BUNDLE_ENV = "TELEGRAM_WEBHOOK_CA_BUNDLE"
_WEBHOOK_URL_ENV = "TELEGRAM_WEBHOOK_URL"


@dataclass(slots=True)
class WebhookConfig:
    """Параметры запроса setWebhook."""

    webhook_url: str
    token: str
    drop_pending_updates: bool
    allowed_updates: Optional[list[str]]
    verify: bool | str

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "url": self.webhook_url,
            "drop_pending_updates": self.drop_pending_updates,
        }
        if self.allowed_updates is not None:
            payload["allowed_updates"] = list(self.allowed_updates)
        return payload


def set_telegram_webhook(
    config: WebhookConfig, *, api_root: str
) -> Mapping[str, Any]:
    """Отправляет setWebhook с параметрами из конфигурации."""

    if not config.webhook_url:
        raise ValueError("Webhook URL must not be empty.")
    if not config.token:
        raise ValueError("Bot token is not set.")

    return call_telegram(
        "setWebhook",
        config.token,
        config.to_payload(),
        api_root=api_root,
        verify=config.verify,
    )


def _resolve_verify(ca_bundle_raw: Optional[str], insecure: bool) -> bool | str:
    if insecure:
        print(
            "TLS verification is disabled. Use this mode for debugging only.",
            file=sys.stderr,
        )
        return False

    if ca_bundle_raw:
        bundle_path = Path(ca_bundle_raw).expanduser()
        if not bundle_path.is_file():
            raise SystemExit(f"CA bundle not found: {bundle_path}")
        return str(bundle_path)

    return True


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Register the auto-filter bot webhook with the Telegram Bot API",
    )
    parser.add_argument(
        "--webhook-url",
        dest="webhook_url",
        help=f"Public HTTPS address of /webhook (defaults to ${_WEBHOOK_URL_ENV}).",
    )
    parser.add_argument(
        "--ca-bundle",
        dest="ca_bundle",
        help="PEM file with trusted root certificates.",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Disable TLS certificate verification.",
    )
    parser.add_argument(
        "--drop-pending-updates",
        action="store_true",
        help="Discard updates queued before the new webhook is applied.",
    )
    parser.add_argument(
        "--allowed-update",
        dest="allowed_updates",
        action="append",
        help="Update type to receive (may be repeated).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    load_env_file()
    args = _parse_args(argv)
    settings = BotSettings.from_env()

    webhook_url = args.webhook_url or os.getenv(_WEBHOOK_URL_ENV, "").strip()
    if not webhook_url:
        raise SystemExit(
            f"Pass the webhook address with --webhook-url or set {_WEBHOOK_URL_ENV}."
        )

    if not settings.token:
        raise SystemExit(
            "TELEGRAM_BOT_TOKEN is not set. Put it into secrets/tokens.env first."
        )

    insecure_env = os.getenv(_INSECURE_ENV, "").strip().lower()
    verify = _resolve_verify(
        args.ca_bundle or os.getenv(_CA_BUNDLE_ENV),
        args.insecure or insecure_env in {"1", "true", "yes", "on"},
    )

    config = WebhookConfig(
        webhook_url=webhook_url,
        token=settings.token,
        drop_pending_updates=args.drop_pending_updates,
        allowed_updates=args.allowed_updates,
        verify=verify,
    )

    try:
        result = set_telegram_webhook(config, api_root=settings.api_root)
    except (TelegramApiError, ValueError) as exc:
        raise SystemExit(f"Failed to set webhook: {exc}")

    formatted = json.dumps(result, ensure_ascii=False, indent=2)
    print(f"Webhook updated. Telegram replied:\n{formatted}")


if __name__ == "__main__":
    main()
