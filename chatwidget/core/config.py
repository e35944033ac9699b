from typing import Optional
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Knowledge Chat Widget"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database
    DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = False
    DB_CREATE_TABLES: bool = True

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    COMPLETION_TEMPERATURE: float = 0.7
    COMPLETION_MAX_TOKENS: int = 500

    # WhatsApp Cloud API
    WHATSAPP_VERIFY_TOKEN: Optional[str] = None
    WHATSAPP_ACCESS_TOKEN: Optional[str] = None
    WHATSAPP_PHONE_NUMBER_ID: Optional[str] = None
    WHATSAPP_API_VERSION: str = "v24.0"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Ordering conversation
    BUSINESS_NAME: str = "Tap & Serve"
    ORDER_PAGE_URL: str = "https://tapserve.onrender.com/premium-orders.html"
    TYPING_DELAY_SECONDS: float = 2.0
    BUTTON_DELAY_SECONDS: float = 1.0
    HISTORY_LIMIT: int = 5

    # Bot management
    ADMIN_API_KEY: Optional[str] = None

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def database_configured(self) -> bool:
        return bool(self.DATABASE_URL)

    @property
    def ai_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.WHATSAPP_ACCESS_TOKEN and self.WHATSAPP_PHONE_NUMBER_ID)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
