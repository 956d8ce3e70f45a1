"""lemonhook configuration."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings for the webhook gateway."""

    lemon_squeezy_webhook_secret: str = ""

    # Firebase service account (private key may arrive with literal "\n")
    firebase_project_id: str = ""
    firebase_client_email: str = ""
    firebase_private_key: str = ""

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def firebase_private_key_pem(self) -> str:
        """Private key with escaped newlines restored."""
        return self.firebase_private_key.replace("\\n", "\n")


settings = Settings()
