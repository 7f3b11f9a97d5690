# oauth_examples/app/core/config.py
import logging
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE_PATH = BASE_DIR / ".env"
TEMPLATES_DIR = BASE_DIR / "app" / "templates"
STATIC_DIR = BASE_DIR / "app" / "static"


class Settings(BaseSettings):

    # Geral
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # Sessão (SessionMiddleware do Starlette)
    SESSION_SECRET_KEY: str = "keyboard cat"
    SESSION_COOKIE_NAME: str = "session"
    LOGIN_URL: str = "/oauth/login"

    # Durações OAuth
    AUTHORIZATION_CODE_EXPIRE_MINUTES: int = 10
    MODULAR_AUTHORIZATION_CODE_EXPIRE_MINUTES: int = 1
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Issuer dos metadados; sem valor usa o base URL do pedido
    ISSUER: Optional[str] = None

    # Armazenamento
    STORAGE_BACKEND: Literal["memory", "sql"] = "memory"
    DATABASE_URL: str = "sqlite://"
    # Base própria do exemplo modular (clientes, códigos e tokens não se misturam)
    MODULAR_DATABASE_URL: str = "sqlite://"

    # Cliente de demonstração do exemplo balanced (callback do Postman)
    DEMO_CLIENT_ID: str = "test-client"
    DEMO_CLIENT_SECRET: Optional[str] = "5fb0b59c347dfa47f4e617e5"
    DEMO_CLIENT_NAME: str = "Test Client"
    DEMO_REDIRECT_URI: str = "https://oauth.pstmn.io/v1/callback"

    # Cliente de demonstração do exemplo modular
    MODULAR_CLIENT_ID: str = "cb894e06"
    MODULAR_CLIENT_SECRET: Optional[str] = "a28d04fdb176b2d1a6be95e8"
    MODULAR_CLIENT_NAME: str = "Modular Client"
    MODULAR_REDIRECT_URI: str = "https://oauth.pstmn.io/v1/callback"

    # Rate limiting (slowapi)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "60/minute"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    class Config:
        case_sensitive = True
        env_file = ENV_FILE_PATH
        env_file_encoding = 'utf-8'

    @property
    def development(self) -> bool:
        """Tolerância de desenvolvimento passada à camada OAuth (http://, docs da API)."""
        return self.ENVIRONMENT != "production"

    @property
    def authorization_code_expires_in(self) -> int:
        return self.AUTHORIZATION_CODE_EXPIRE_MINUTES * 60

    @property
    def modular_authorization_code_expires_in(self) -> int:
        return self.MODULAR_AUTHORIZATION_CODE_EXPIRE_MINUTES * 60

    @property
    def access_token_expires_in(self) -> int:
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60


try:
    settings = Settings()

    if not settings.development and settings.SESSION_SECRET_KEY == "keyboard cat":
        logging.warning(
            "SESSION_SECRET_KEY still has the example value while ENVIRONMENT is "
            "'production'. Set SESSION_SECRET_KEY in the environment or in .env."
        )

except Exception as e:
    logging.error(f"FATAL: could not load settings from environment/{ENV_FILE_PATH}: {e}")
    raise e
