from __future__ import annotations

from flask import Flask, Response, request
from flask.typing import ResponseReturnValue

from server_config import BotSettings, configure_flask_environment, load_env_file
from telegram_client import TelegramMessageSender
from webhook_handlers import (
    METHOD_NOT_ALLOWED_BODY,
    TelegramWebhookHandler,
    configure_logging,
)

# every method reaches the handler so that it can answer 405 itself
_WEBHOOK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    settings: BotSettings | None = None,
    webhook_handler: TelegramWebhookHandler | None = None,
) -> Flask:
    """Build the Flask application that hosts the Telegram webhook."""

    if settings is None:
        load_env_file()
        settings = BotSettings.from_env()

    logger = configure_logging(settings.log_level)
    if not settings.has_token:
        logger.error("TELEGRAM_BOT_TOKEN environment variable is not set!")

    if webhook_handler is None:
        webhook_handler = TelegramWebhookHandler(
            settings, TelegramMessageSender(settings), logger=logger
        )

    app = Flask(__name__)

    @app.route("/webhook", methods=_WEBHOOK_METHODS)
    def telegram_webhook() -> ResponseReturnValue:
        """Handle one Telegram webhook delivery."""

        result = webhook_handler.handle(request.method, request.get_data(as_text=True))
        return Response(result.body, status=result.status_code, mimetype="text/plain")

    @app.errorhandler(405)
    def method_not_allowed(error: Exception) -> ResponseReturnValue:
        """Answer methods werkzeug refuses before routing with the plain-text body."""
        return Response(METHOD_NOT_ALLOWED_BODY, status=405, mimetype="text/plain")

    @app.route("/", methods=["GET"])
    def index() -> ResponseReturnValue:
        """Provide a simple health-check endpoint."""
        return {"status": "running"}

    return app


app = create_app()


if __name__ == "__main__":
    port = configure_flask_environment()
    app.run(host="0.0.0.0", port=port)
