# oauth_examples/app/schemas/oauth2.py
from typing import Dict, List, Optional

from authlib.oauth2.rfc6749 import OAuth2Request
from pydantic import BaseModel


class AuthorizationRequestMeta(BaseModel):
    """Parâmetros de um pedido de autorização, tal como enviados pelo cliente."""
    response_type: Optional[str] = None
    client_id: Optional[str] = None
    redirect_uri: Optional[str] = None
    scope: Optional[str] = None
    state: Optional[str] = None
    code_challenge: Optional[str] = None
    code_challenge_method: Optional[str] = None

    @classmethod
    def from_oauth2_request(cls, request: OAuth2Request) -> "AuthorizationRequestMeta":
        data = request.data
        return cls(**{name: data.get(name) or None for name in cls.model_fields})

    def to_query(self) -> Dict[str, str]:
        return self.model_dump(exclude_none=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    expires_in: int
    scope: Optional[str] = None


class ProtectedResourceResponse(BaseModel):
    status: str = "ok"
    client_id: str
    user_id: Optional[str] = None
    scope: Optional[str] = None
    expires_at: int


class AuthorizationServerMetadata(BaseModel):
    """Metadados do authorization server (RFC 8414)."""
    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    response_types_supported: List[str]
    grant_types_supported: List[str]
    code_challenge_methods_supported: List[str]
    token_endpoint_auth_methods_supported: List[str]
