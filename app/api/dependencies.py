# oauth_examples/app/api/dependencies.py
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import LoginRequiredException
from app.crud.storage import OAuthStorage
from app.models.oauth2_access_token import OAuth2AccessToken
from app.oauth2_server import AuthorizationRequestState, AuthorizationServer, authorize_incoming_request
from app.schemas.session import SESSION_CONTEXT_KEY, SessionContext, SessionUser
from app.services.auth_service import AuthService

# Usado pela rota protegida; a falta do header é reportada por nós, não pelo FastAPI
bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Opaque access token issued by /oauth/token, e.g. 'Bearer 3f1c...'",
)


# --- Estado por app (definido pelo middleware em main.py) ---

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_oauth_server(request: Request) -> AuthorizationServer:
    return request.state.oauth2_server


def get_storage(request: Request) -> OAuthStorage:
    return request.state.storage


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.state, "auth_service", None)
    if service is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return service


# --- Contexto de sessão ---

def get_session_context(request: Request) -> SessionContext:
    """Carrega o contexto explícito da sessão; o FastAPI guarda-o em cache no resto do pedido."""
    raw = request.session.get(SESSION_CONTEXT_KEY) or {}
    try:
        return SessionContext.model_validate(raw)
    except ValidationError:
        logger.warning("Discarding malformed session context")
        return SessionContext()


def save_session_context(request: Request, context: SessionContext) -> None:
    request.session[SESSION_CONTEXT_KEY] = context.model_dump(mode="json", exclude_none=True)


def ensure_login(
    request: Request,
    context: SessionContext = Depends(get_session_context),
) -> SessionUser:
    """
    Gate de sessão. Devolve o utilizador autenticado; caso contrário guarda o
    destino do utilizador e levanta LoginRequiredException (respondida com um
    302 para o formulário de login).
    """
    if context.is_authenticated:
        return context.user

    redirect_to = request.url.path
    if request.url.query:
        redirect_to = f"{redirect_to}?{request.url.query}"
    context.redirect_to = redirect_to
    save_session_context(request, context)
    logger.info(f"Login required for {request.url.path}, redirecting to login")
    raise LoginRequiredException(redirect_to)


# --- Pedido de autorização (exemplo balanced) ---

async def validate_authorization_request(
    request: Request,
    context: SessionContext = Depends(get_session_context),
    server: AuthorizationServer = Depends(get_oauth_server),
) -> AuthorizationRequestState:
    """
    Valida o pedido de autorização e guarda o resultado na sessão: os
    parâmetros em caso de sucesso, senão o erro visível para o cliente.
    Erros redirecionáveis saem logo via OAuth2RedirectError.
    """
    authorization = await authorize_incoming_request(server, request)
    if authorization.is_valid:
        context.authorization_request = authorization.meta.to_query()
        context.error = None
    else:
        context.authorization_request = None
        context.error = authorization.error
    save_session_context(request, context)
    return authorization


# --- Bearer token (rota protegida) ---

async def get_bearer_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    access_token: Optional[str] = Query(None, description="Access token, when not sent as a Bearer header"),
) -> Optional[str]:
    if creds is not None and creds.credentials:
        return creds.credentials
    return access_token or None


async def get_current_access_token(
    token: Optional[str] = Depends(get_bearer_token),
    storage: OAuthStorage = Depends(get_storage),
) -> OAuth2AccessToken:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate access token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    access_token = storage.find_access_token(token)
    if access_token is None:
        logger.info("Protected resource called with an unknown access token")
        raise credentials_exception
    if access_token.is_expired():
        logger.info(f"Protected resource called with an expired token of '{access_token.client_id}'")
        raise credentials_exception
    return access_token
