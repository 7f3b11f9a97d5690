# oauth_examples/app/models/oauth2_authorization_code.py
import time
from typing import Optional

from authlib.oauth2.rfc6749 import AuthorizationCodeMixin
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class OAuth2AuthorizationCode(Base, AuthorizationCodeMixin):
    """
    Código de curta duração emitido com o consentimento do utilizador. Apagado
    pela troca que o consome; caso contrário simplesmente expira.
    """
    __tablename__ = "oauth2_authorization_codes"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(120), unique=True, index=True, nullable=False)
    client_id: Mapped[str] = mapped_column(String(48), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Valor enviado no pedido de autorização, None se foi omitido
    redirect_uri: Mapped[Optional[str]] = mapped_column(Text)
    scope: Mapped[Optional[str]] = mapped_column(Text)

    # PKCE (RFC 7636); lido pela extensão CodeChallenge do Authlib
    code_challenge: Mapped[Optional[str]] = mapped_column(String(128))
    code_challenge_method: Mapped[Optional[str]] = mapped_column(String(48))

    # Timestamps Unix (segundos)
    auth_time: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_at: Mapped[int] = mapped_column(Integer, nullable=False)

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return now >= self.expires_at

    def get_redirect_uri(self) -> Optional[str]:
        return self.redirect_uri

    def get_scope(self) -> str:
        return self.scope or ""

    def get_auth_time(self) -> int:
        return self.auth_time

    def __repr__(self) -> str:
        return f"<OAuth2AuthorizationCode client={self.client_id} user={self.user_id}>"
