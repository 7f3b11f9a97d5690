# oauth_examples/app/models/oauth2_client.py
from typing import List, Optional

from authlib.oauth2.rfc6749 import ClientMixin
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.security import verify_client_secret
from app.db.base import Base

CONFIDENTIAL_AUTH_METHODS = ("client_secret_basic", "client_secret_post")


class OAuth2Client(Base, ClientMixin):
    """
    Aplicação cliente registada no authorization server.
    Registada no arranque e imutável durante a vida do processo.
    """
    __tablename__ = "oauth2_clients"

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[str] = mapped_column(String(48), unique=True, index=True, nullable=False)
    # None para clientes públicos (método de autenticação "none" no token endpoint)
    client_secret_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    client_name: Mapped[Optional[str]] = mapped_column(String(120))

    # Listas separadas por espaços
    redirect_uris_str: Mapped[Optional[str]] = mapped_column(Text)
    # None: o cliente pode pedir qualquer scope
    scope_str: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_types_str: Mapped[Optional[str]] = mapped_column(Text, default="code")
    grant_types_str: Mapped[Optional[str]] = mapped_column(Text, default="authorization_code")

    @property
    def redirect_uris(self) -> List[str]:
        return self.redirect_uris_str.split() if self.redirect_uris_str else []

    @property
    def redirect_uri(self) -> Optional[str]:
        return self.get_default_redirect_uri()

    @property
    def scope(self) -> Optional[str]:
        return self.scope_str

    @property
    def response_types(self) -> List[str]:
        return (self.response_types_str or "code").split()

    @property
    def grant_types(self) -> List[str]:
        return (self.grant_types_str or "authorization_code").split()

    # -- ClientMixin --
    def get_client_id(self) -> str:
        return self.client_id

    def get_default_redirect_uri(self) -> Optional[str]:
        if self.redirect_uris:
            return self.redirect_uris[0]
        return None

    def get_allowed_scope(self, scope: str) -> str:
        if not scope:
            return ""
        if self.scope_str is None:
            return scope
        allowed = set(self.scope_str.split())
        return " ".join(s for s in scope.split() if s in allowed)

    def check_redirect_uri(self, redirect_uri: str) -> bool:
        return redirect_uri in self.redirect_uris

    def has_client_secret(self) -> bool:
        return bool(self.client_secret_hash)

    def check_client_secret(self, client_secret: str) -> bool:
        if not self.client_secret_hash:
            return False
        return verify_client_secret(client_secret, self.client_secret_hash)

    def check_endpoint_auth_method(self, method: str, endpoint: str) -> bool:
        if endpoint != "token":
            return True
        if self.has_client_secret():
            return method in CONFIDENTIAL_AUTH_METHODS
        return method == "none"

    def check_response_type(self, response_type: str) -> bool:
        return response_type in self.response_types

    def check_grant_type(self, grant_type: str) -> bool:
        return grant_type in self.grant_types

    def __repr__(self) -> str:
        return f"<OAuth2Client {self.client_id}>"
