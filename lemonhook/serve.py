"""FastAPI application for the Lemon Squeezy webhook gateway."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from lemonhook.config import settings
from lemonhook.webhooks.handlers import WEBHOOK_PATH, router as webhook_router

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Build the app with webhook and health routes."""
    _configure_logging()
    app = FastAPI(title="lemonhook")
    app.include_router(webhook_router)

    @app.get("/health")
    async def health():
        """Liveness plus whether the signing secret is configured."""
        return {
            "status": "ok",
            "service": "lemonhook",
            "webhook_secret_configured": bool(settings.lemon_squeezy_webhook_secret),
        }

    logger.info("Webhook route registered: %s", WEBHOOK_PATH)
    return app


app = create_app()


def main() -> None:
    """Run the gateway under uvicorn."""
    import uvicorn

    uvicorn.run("lemonhook.serve:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
