# oauth_examples/app/models/oauth2_access_token.py
import time
from typing import Optional

from authlib.oauth2.rfc6749 import TokenMixin
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class OAuth2AccessToken(Base, TokenMixin):
    """Bearer token opaco. Válido só enquanto now < expires_at; nunca renovado nem revogado."""
    __tablename__ = "oauth2_access_tokens"

    id: Mapped[int] = mapped_column(primary_key=True)
    token: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    client_id: Mapped[str] = mapped_column(String(48), nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String(64))
    scope: Mapped[Optional[str]] = mapped_column(Text)
    issued_at: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_at: Mapped[int] = mapped_column(Integer, nullable=False)
    ttl: Mapped[int] = mapped_column(Integer, nullable=False)  # segundos

    # -- TokenMixin --
    def check_client(self, client) -> bool:
        return self.client_id == client.get_client_id()

    def get_scope(self) -> str:
        return self.scope or ""

    def get_expires_in(self) -> int:
        return self.ttl

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return now >= self.expires_at

    def is_revoked(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"<OAuth2AccessToken client={self.client_id} expires_at={self.expires_at}>"
