# catalog_bot/config.py
# ------------------------------------------------------------
# Runtime settings read through python-decouple (env vars or .env)
# - WhatsApp Cloud API credentials and endpoint
# - Upload directory + public base URL used to mint image URLs
# - Database URL, dialog expiry and outbound worker sizing
# ------------------------------------------------------------
from dataclasses import dataclass
from typing import Tuple

from decouple import config, Csv


@dataclass(frozen=True)
class Settings:
    whatsapp_api_url: str
    whatsapp_api_version: str
    whatsapp_phone_number_id: str
    whatsapp_access_token: str
    whatsapp_verify_token: str
    upload_dir: str
    api_base_url: str
    database_url: str = "sqlite:///./catalog.db"
    conversation_idle_minutes: int = 30
    outbound_workers: int = 2
    outbound_queue_size: int = 100
    http_timeout: float = 20.0
    cors_origins: Tuple[str, ...] = ("http://localhost:5173", "http://localhost:3000")
    log_level: str = "INFO"

    @property
    def messages_url(self) -> str:
        return f"{self.whatsapp_api_url.rstrip('/')}/{self.whatsapp_api_version}/{self.whatsapp_phone_number_id}/messages"


def load_settings() -> Settings:
    """
    Build Settings from the environment.
    Keys without a default are required; decouple raises UndefinedValueError when missing.
    """
    return Settings(
        whatsapp_api_url=config("WHATSAPP_API_URL", default="https://graph.facebook.com"),
        whatsapp_api_version=config("WHATSAPP_API_VERSION", default="v18.0"),
        whatsapp_phone_number_id=config("WHATSAPP_PHONE_NUMBER_ID"),
        whatsapp_access_token=config("WHATSAPP_ACCESS_TOKEN"),
        whatsapp_verify_token=config("WHATSAPP_VERIFY_TOKEN"),
        upload_dir=config("UPLOAD_DIR", default="./uploads"),
        api_base_url=config("API_BASE_URL").rstrip("/"),
        database_url=config("DATABASE_URL", default="sqlite:///./catalog.db"),
        conversation_idle_minutes=config("CONVERSATION_IDLE_MINUTES", cast=int, default=30),
        outbound_workers=config("OUTBOUND_WORKERS", cast=int, default=2),
        outbound_queue_size=config("OUTBOUND_QUEUE_SIZE", cast=int, default=100),
        http_timeout=config("HTTP_TIMEOUT", cast=float, default=20.0),
        cors_origins=tuple(
            config("CORS_ORIGINS", cast=Csv(), default="http://localhost:5173,http://localhost:3000")
        ),
        log_level=config("LOG_LEVEL", default="INFO").upper(),
    )
