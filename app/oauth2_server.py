# oauth_examples/app/oauth2_server.py
"""
Ponte entre o AuthorizationServer do Authlib e esta aplicação.

O Authlib trata do protocolo: validação do pedido, autenticação do cliente,
emissão de códigos e tokens, verificação PKCE e o formato de todos os erros
OAuth. Aqui ficam apenas os callbacks que o Authlib espera (query_client,
save_token e os hooks do grant), que leem e escrevem através de um
``OAuthStorage``, e os adaptadores de pedido/resposta para Starlette.
"""
import time
from collections import defaultdict
from dataclasses import dataclass
from itertools import chain
from typing import Callable, DefaultDict, Dict, Iterable, List, Optional, Protocol, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse

from authlib.oauth2 import OAuth2Error
from authlib.oauth2.rfc6749 import AuthorizationServer as _AuthorizationServer
from authlib.oauth2.rfc6749 import InsecureTransportError, OAuth2Request, grants
from authlib.oauth2.rfc6750 import BearerTokenGenerator
from authlib.oauth2.rfc7636 import CodeChallenge
from fastapi import Request
from fastapi.responses import JSONResponse, Response
from loguru import logger

from app.core.exceptions import OAuth2RedirectError
from app.core.security import generate_uuid_token
from app.crud.storage import OAuthStorage
from app.models.oauth2_access_token import OAuth2AccessToken
from app.models.oauth2_authorization_code import OAuth2AuthorizationCode
from app.models.oauth2_client import OAuth2Client
from app.schemas.oauth2 import AuthorizationRequestMeta
from app.schemas.session import SessionUser

AUTHORIZE_PATH = "/oauth/authorize"
TOKEN_ENDPOINT_AUTH_METHODS = ["client_secret_basic", "client_secret_post", "none"]


# --- Adaptador de pedidos ---

class StarletteOAuth2Request(OAuth2Request):
    """OAuth2Request sobre um pedido Starlette já lido (o corpo do form é assíncrono).

    Com `allow_insecure_transport` o pedido aceita URIs http:// mesmo sem
    AUTHLIB_INSECURE_TRANSPORT; a tolerância é do servidor, não do processo.
    """

    def __init__(
        self,
        method: str,
        uri: str,
        form_items: Iterable[Tuple[str, str]] = (),
        headers=None,
        allow_insecure_transport: bool = False,
    ):
        if not allow_insecure_transport:
            InsecureTransportError.check(uri)
        # OAuth2Request.__init__ repetiria a verificação com base na variável de ambiente
        self.method = method
        self.uri = uri
        self.body = None
        self.headers = headers or {}
        self.client = None
        self.auth_method = None
        self.user = None
        self.authorization_code = None
        self.refresh_token = None
        self.credential = None
        self._parsed_query = None

        self._query_items: List[Tuple[str, str]] = parse_qsl(urlparse(uri).query, keep_blank_values=True)
        self._form_items: List[Tuple[str, str]] = list(form_items)

    @property
    def args(self) -> Dict[str, str]:
        return dict(self._query_items)

    @property
    def form(self) -> Dict[str, str]:
        return dict(self._form_items)

    @property
    def data(self) -> Dict[str, str]:
        data = self.args
        data.update(self.form)
        return data

    @property
    def datalist(self) -> DefaultDict[str, List[str]]:
        values: DefaultDict[str, List[str]] = defaultdict(list)
        for key, value in chain(self._query_items, self._form_items):
            values[key].append(value)
        return values


async def build_oauth2_request(request: Request, allow_insecure_transport: bool = False) -> StarletteOAuth2Request:
    """Lê o corpo (se houver) e embrulha o pedido para o Authlib.

    Levanta InsecureTransportError (um OAuth2Error) para URLs http:// quando a
    tolerância de desenvolvimento está desligada.
    """
    form_items: List[Tuple[str, str]] = []
    if request.method == "POST":
        form = await request.form()
        form_items = [(key, value) for key, value in form.multi_items() if isinstance(value, str)]
    return StarletteOAuth2Request(
        request.method,
        str(request.url),
        form_items,
        request.headers,
        allow_insecure_transport=allow_insecure_transport,
    )


def oauth2_request_from_params(
    request: Request,
    params: Dict[str, str],
    allow_insecure_transport: bool = False,
) -> StarletteOAuth2Request:
    """Reconstrói o pedido de autorização a partir de parâmetros já validados."""
    uri = str(request.url.replace(path=AUTHORIZE_PATH, query=urlencode(params)))
    return StarletteOAuth2Request(
        "GET", uri, (), request.headers, allow_insecure_transport=allow_insecure_transport,
    )


def describe_error(error: OAuth2Error) -> Dict[str, str]:
    return {key: str(value) for key, value in error.get_body() if value}


# --- Grant ---

class AuthorizationCodeGrant(grants.AuthorizationCodeGrant):
    TOKEN_ENDPOINT_AUTH_METHODS = TOKEN_ENDPOINT_AUTH_METHODS

    def generate_authorization_code(self) -> str:
        return self.server.code_generator()

    def save_authorization_code(self, code: str, request: OAuth2Request) -> OAuth2AuthorizationCode:
        return self.server.save_authorization_code(code, request)

    def query_authorization_code(self, code: str, client: OAuth2Client) -> Optional[OAuth2AuthorizationCode]:
        authorization_code = self.server.storage.find_authorization_code(code)
        if authorization_code is None:
            return None
        if authorization_code.client_id != client.get_client_id():
            logger.warning(f"Authorization code presented by '{client.get_client_id()}' belongs to another client")
            return None
        if authorization_code.is_expired():
            logger.info(f"Expired authorization code presented by '{client.get_client_id()}'")
            return None
        return authorization_code

    def delete_authorization_code(self, authorization_code: OAuth2AuthorizationCode) -> None:
        self.server.storage.delete_authorization_code(authorization_code.code)

    def authenticate_user(self, authorization_code: OAuth2AuthorizationCode) -> SessionUser:
        return SessionUser(id=authorization_code.user_id)


# --- Servidor ---

class AuthorizationAuthority(Protocol):
    """O que a camada de autorização pede à biblioteca."""

    # Tolerância a http:// deste servidor
    development: bool

    def validate_authorization_request(self, request: OAuth2Request) -> grants.AuthorizationCodeGrant: ...

    def issue_authorization_code(self, request: OAuth2Request, grant_user: Optional[SessionUser]) -> Response: ...


class AuthorizationServer(_AuthorizationServer):
    def __init__(
        self,
        storage: OAuthStorage,
        *,
        code_expires_in: int = 600,
        token_expires_in: int = 1800,
        code_generator: Callable[[], str] = generate_uuid_token,
        token_generator: Callable[[], str] = generate_uuid_token,
        development: bool = False,
    ):
        super().__init__()
        self.storage = storage
        self.code_expires_in = code_expires_in
        self.token_expires_in = token_expires_in
        self.code_generator = code_generator
        self.token_generator = token_generator
        # Aceita URIs http:// (só este servidor; o ambiente do processo não muda)
        self.development = development

        self.register_token_generator(
            "default",
            BearerTokenGenerator(
                access_token_generator=self._generate_access_token,
                expires_generator=self._get_token_expires_in,
            ),
        )
        self.register_grant(AuthorizationCodeGrant, [CodeChallenge(required=True)])

    # -- Callbacks do Authlib --
    def query_client(self, client_id: str) -> Optional[OAuth2Client]:
        return self.storage.find_client(client_id)

    def save_authorization_code(self, code: str, request: OAuth2Request) -> OAuth2AuthorizationCode:
        now = int(time.time())
        data = request.data
        authorization_code = OAuth2AuthorizationCode(
            code=code,
            client_id=request.client.get_client_id(),
            user_id=str(request.user.id),
            redirect_uri=request.redirect_uri or None,
            scope=request.scope or None,
            code_challenge=data.get("code_challenge") or None,
            code_challenge_method=data.get("code_challenge_method") or None,
            auth_time=now,
            expires_at=now + self.code_expires_in,
        )
        self.storage.save_authorization_code(authorization_code)
        logger.info(
            f"Authorization code issued to '{authorization_code.client_id}' for user "
            f"{authorization_code.user_id} (expires in {self.code_expires_in}s)"
        )
        return authorization_code

    def save_token(self, token: dict, request: OAuth2Request) -> None:
        now = int(time.time())
        expires_in = int(token.get("expires_in") or self.token_expires_in)
        user = request.user
        access_token = OAuth2AccessToken(
            token=token["access_token"],
            client_id=request.client.get_client_id(),
            user_id=str(user.id) if user else None,
            scope=token.get("scope"),
            issued_at=now,
            expires_at=now + expires_in,
            ttl=expires_in,
        )
        self.storage.save_access_token(access_token)
        logger.info(f"Access token issued to '{access_token.client_id}' (ttl {expires_in}s)")

    def _generate_access_token(self, **kwargs) -> str:
        return self.token_generator()

    def _get_token_expires_in(self, client: OAuth2Client, grant_type: str) -> int:
        return self.token_expires_in

    # -- Integração com o framework --
    def create_oauth2_request(self, request) -> OAuth2Request:
        if isinstance(request, OAuth2Request):
            return request
        raise TypeError("Wrap the request with build_oauth2_request() before handing it to the server")

    def handle_response(self, status_code: int, payload, headers) -> Response:
        headers = dict(headers or [])
        if isinstance(payload, dict):
            return JSONResponse(payload, status_code=status_code, headers=headers)
        return Response(payload or b"", status_code=status_code, headers=headers)

    def send_signal(self, name: str, *args, **kwargs) -> None:
        logger.debug(f"authlib signal: {name}")

    # -- Capacidades usadas pela camada de autorização --
    def validate_authorization_request(self, request: OAuth2Request) -> grants.AuthorizationCodeGrant:
        return self.get_consent_grant(request)

    def issue_authorization_code(self, request: OAuth2Request, grant_user: Optional[SessionUser]) -> Response:
        # grant_user=None faz o Authlib responder com um redirect access_denied
        return self.create_authorization_response(request, grant_user=grant_user)


# --- Passo de autorização comum aos dois exemplos ---

@dataclass
class AuthorizationRequestState:
    """O que o diálogo de consentimento precisa de saber de um pedido validado."""
    meta: Optional[AuthorizationRequestMeta] = None
    client_name: Optional[str] = None
    redirect_uri: Optional[str] = None
    error: Optional[Dict[str, str]] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.meta is not None


def authorize_request(authority: AuthorizationAuthority, request: OAuth2Request) -> AuthorizationRequestState:
    """
    Pede à biblioteca que valide um pedido de autorização.

    Erros que a biblioteca consegue devolver a um redirect_uri validado sobem
    como OAuth2RedirectError; os restantes (cliente desconhecido, redirect_uri
    inválido, response_type não suportado) voltam para o diálogo os mostrar.
    """
    try:
        grant = authority.validate_authorization_request(request)
    except OAuth2Error as error:
        if error.redirect_uri:
            logger.warning(f"Authorization request rejected, redirecting: {error.error}")
            raise OAuth2RedirectError(error)
        logger.warning(f"Authorization request rejected: {error.error} ({error.description})")
        return AuthorizationRequestState(error=describe_error(error))

    client = grant.request.client
    return AuthorizationRequestState(
        meta=AuthorizationRequestMeta.from_oauth2_request(grant.request),
        client_name=client.client_name,
        redirect_uri=grant.redirect_uri,
    )


async def authorize_incoming_request(authority: AuthorizationAuthority, request: Request) -> AuthorizationRequestState:
    try:
        oauth_request = await build_oauth2_request(request, allow_insecure_transport=authority.development)
    except OAuth2Error as error:
        logger.warning(f"Authorization request refused before validation: {error.error}")
        return AuthorizationRequestState(error=describe_error(error))
    return authorize_request(authority, oauth_request)


CONSENT_VALUES = frozenset({"true", "1", "on", "yes", "allow"})


def is_consent_given(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in CONSENT_VALUES
