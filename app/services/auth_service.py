# oauth_examples/app/services/auth_service.py
"""
Serviço injetável por trás do exemplo modular.

Tem o seu próprio registo de clientes e o seu próprio servidor Authlib
(códigos de um minuto, em hex) e expõe os passos de que as rotas modulares
precisam: validar um pedido de autorização e transformar a decisão de
consentimento numa resposta. Ao contrário do exemplo balanced, nada do pedido
pendente fica na sessão; os parâmetros validados viajam no form de
consentimento.
"""
from typing import Optional

from fastapi import Request
from fastapi.responses import Response
from loguru import logger

from app.core.config import Settings
from app.core.security import generate_hex_code
from app.crud.storage import OAuthStorage
from app.db.initial_data import create_storage, modular_clients
from app.models.oauth2_authorization_code import OAuth2AuthorizationCode
from app.models.oauth2_client import OAuth2Client
from app.oauth2_server import (
    AuthorizationRequestState,
    AuthorizationServer,
    authorize_incoming_request,
    is_consent_given,
    oauth2_request_from_params,
)
from app.schemas.oauth2 import AuthorizationRequestMeta
from app.schemas.session import SessionUser


class AuthService:
    def __init__(self, storage: OAuthStorage, settings: Settings):
        self.storage = storage
        self.server = AuthorizationServer(
            storage,
            code_expires_in=settings.modular_authorization_code_expires_in,
            token_expires_in=settings.access_token_expires_in,
            code_generator=generate_hex_code,
            development=settings.development,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthService":
        storage = create_storage(
            settings,
            modular_clients(settings),
            name="modular",
            database_url=settings.MODULAR_DATABASE_URL,
        )
        return cls(storage, settings)

    def find_client(self, client_id: str) -> Optional[OAuth2Client]:
        return self.storage.find_client(client_id)

    def find_authorization_code(self, code: str) -> Optional[OAuth2AuthorizationCode]:
        return self.storage.find_authorization_code(code)

    async def authorize_request(self, request: Request) -> AuthorizationRequestState:
        return await authorize_incoming_request(self.server, request)

    def decide(
        self,
        request: Request,
        meta: AuthorizationRequestMeta,
        user: SessionUser,
        consent: Optional[str],
    ) -> Response:
        """Revalida `meta` e responde com o redirect do código, ou access_denied sem consentimento."""
        oauth_request = oauth2_request_from_params(
            request, meta.to_query(), allow_insecure_transport=self.server.development,
        )
        granted = is_consent_given(consent)
        logger.info(f"User {user.id} {'granted' if granted else 'denied'} consent to '{meta.client_id}'")
        return self.server.issue_authorization_code(oauth_request, user if granted else None)
