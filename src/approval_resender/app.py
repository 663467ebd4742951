"""
Flask Application Factory.

Creates and configures the Flask application.
"""

import signal
import sys
from typing import Optional

from flask import Flask
from flask_cors import CORS

from approval_resender.api import api_bp
from approval_resender.api.routes import EXTENSION_KEY
from approval_resender.config import settings
from approval_resender.infrastructure.logging import log_request_context, logger
from approval_resender.infrastructure.metrics import setup_metrics_middleware
from approval_resender.services import ServiceContainer


def _handle_sigterm(signum: int, frame) -> None:
    """
    Handle SIGTERM for graceful shutdown.

    The hosting platform sends SIGTERM before stopping the instance.
    """
    logger.info(
        "Received SIGTERM, shutting down gracefully",
        extra={"extra_fields": {"signal": signum}}
    )
    sys.exit(0)


def create_app(
    config: Optional[dict] = None,
    container: Optional[ServiceContainer] = None,
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Optional Flask configuration overrides.
        container: Pre-built services; built from settings if omitted.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    app.json.sort_keys = False

    if config:
        app.config.update(config)

    CORS(app, origins=list(settings.cors_origins) or "*")

    log_request_context(app)
    setup_metrics_middleware(app)

    app.extensions[EXTENSION_KEY] = container or ServiceContainer.from_settings()

    app.register_blueprint(api_bp)

    logger.info(
        "Application initialized",
        extra={"extra_fields": {
            "environment": settings.environment,
        }}
    )

    return app


if __name__ == "__main__":
    signal.signal(signal.SIGTERM, _handle_sigterm)

    create_app().run(
        host="0.0.0.0",
        port=settings.port,
        debug=settings.debug,
    )
