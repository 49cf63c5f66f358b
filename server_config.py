"""Runtime configuration for the auto-filter bot.

Settings are read once from the environment when the process starts and then
passed around as an immutable :class:`BotSettings` instance. The module also
aligns the default host and port used by the ``flask run`` command with the
values expected by hosting providers: by default the Flask CLI listens on
``127.0.0.1:5000``, which prevents external connections when deployed, so we
mirror ``PORT`` into ``FLASK_RUN_PORT`` and force the host to ``0.0.0.0``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
DEFAULT_API_ROOT = "https://api.telegram.org"
DEFAULT_LOG_LEVEL = "INFO"

PORT_ENV_NAME = "PORT"
FLASK_HOST_ENV_NAME = "FLASK_RUN_HOST"
FLASK_PORT_ENV_NAME = "FLASK_RUN_PORT"
TOKEN_ENV_NAME = "TELEGRAM_BOT_TOKEN"
API_ROOT_ENV_NAME = "TELEGRAM_API_ROOT"
API_TIMEOUT_ENV_NAME = "TELEGRAM_API_TIMEOUT"
LOG_LEVEL_ENV_NAME = "TELEGRAM_LOG_LEVEL"
TEXTS_PATH_ENV_NAME = "TELEGRAM_TEXTS_PATH"

# KEY=VALUE file, e.g. TELEGRAM_BOT_TOKEN=...
SECRETS_FILE = Path("secrets/tokens.env")


@dataclass(frozen=True, slots=True)
class BotSettings:
    """Process-wide, read-only bot configuration."""

    token: Optional[str] = None
    api_root: str = DEFAULT_API_ROOT
    api_timeout: Optional[float] = None
    log_level: str = DEFAULT_LOG_LEVEL
    texts_path: Optional[Path] = None

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "BotSettings":
        env = os.environ if environ is None else environ

        token = env.get(TOKEN_ENV_NAME, "").strip() or None
        api_root = env.get(API_ROOT_ENV_NAME, "").strip().rstrip("/") or DEFAULT_API_ROOT
        log_level = env.get(LOG_LEVEL_ENV_NAME, "").strip().upper() or DEFAULT_LOG_LEVEL

        raw_texts_path = env.get(TEXTS_PATH_ENV_NAME, "").strip()
        texts_path = Path(raw_texts_path).expanduser() if raw_texts_path else None

        return cls(
            token=token,
            api_root=api_root,
            api_timeout=_parse_timeout(env.get(API_TIMEOUT_ENV_NAME, "")),
            log_level=log_level,
            texts_path=texts_path,
        )


def _parse_timeout(raw_value: str) -> Optional[float]:
    raw_value = raw_value.strip()
    if not raw_value:
        return None
    try:
        timeout = float(raw_value)
    except ValueError:
        return None
    return timeout if timeout > 0 else None


def mask_token(token: str) -> str:
    """Return a log-safe representation of the bot token."""
    return f"{token[:5]}...{token[-2:]}" if len(token) > 7 else "***"


def load_env_file(path: Path = SECRETS_FILE) -> None:
    """Load ``KEY=VALUE`` pairs from ``path`` without overriding the environment."""

    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, raw_value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def configure_flask_environment(*, default_port: int = DEFAULT_PORT) -> int:
    """Ensure Flask binds to the externally visible host and port.

    Parameters
    ----------
    default_port:
        Port value used when the ``PORT`` environment variable is absent or
        malformed. The same value is also written to ``FLASK_RUN_PORT`` when
        it is not explicitly configured.

    Returns
    -------
    int
        The integer port that should be used by the application server.
    """

    raw_port = os.environ.get(PORT_ENV_NAME, "").strip()
    port = default_port

    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            port = default_port
    else:
        os.environ.setdefault(PORT_ENV_NAME, str(default_port))

    os.environ.setdefault(FLASK_PORT_ENV_NAME, str(port))
    os.environ.setdefault(FLASK_HOST_ENV_NAME, DEFAULT_HOST)

    return port
