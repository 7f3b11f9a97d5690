# oauth_examples/app/api/endpoints/oauth.py
from typing import Optional

from authlib.oauth2 import OAuth2Error
from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response
from loguru import logger

from app.api.dependencies import (
    ensure_login,
    get_oauth_server,
    get_session_context,
    save_session_context,
    validate_authorization_request,
)
from app.core.templating import templates
from app.oauth2_server import (
    AuthorizationRequestState,
    AuthorizationServer,
    build_oauth2_request,
    is_consent_given,
    oauth2_request_from_params,
)
from app.schemas.oauth2 import TokenResponse
from app.schemas.session import SessionContext, SessionUser

# Exemplo balanced: o pedido pendente fica na sessão entre o diálogo e a decisão
router = APIRouter()
# Partilhado pelos dois exemplos
token_router = APIRouter()


@router.get("/authorize", response_class=HTMLResponse)
async def authorize(
    request: Request,
    authorization: AuthorizationRequestState = Depends(validate_authorization_request),
    user: SessionUser = Depends(ensure_login),
    context: SessionContext = Depends(get_session_context),
):
    """Diálogo de consentimento. Erros que a biblioteca não pode redirecionar aparecem aqui com 400."""
    return templates.TemplateResponse(
        request,
        "dialog.html",
        {
            "user": user,
            "client_name": authorization.client_name,
            "meta": authorization.meta,
            "redirect_uri": authorization.redirect_uri,
            "error": context.error,
            "decision_url": request.url_for("authorize_decision").path,
        },
        status_code=status.HTTP_400_BAD_REQUEST if context.error else status.HTTP_200_OK,
    )


@router.post("/authorize/decision", name="authorize_decision")
async def authorize_decision(
    request: Request,
    consent: Optional[str] = Form(None),
    user: SessionUser = Depends(ensure_login),
    context: SessionContext = Depends(get_session_context),
    server: AuthorizationServer = Depends(get_oauth_server),
) -> Response:
    if not context.authorization_request:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No pending authorization request",
        )

    oauth_request = oauth2_request_from_params(
        request, context.authorization_request, allow_insecure_transport=server.development,
    )
    client_id = context.authorization_request.get("client_id")
    # Uma decisão por pedido validado
    context.authorization_request = None
    save_session_context(request, context)

    granted = is_consent_given(consent)
    logger.info(f"User {user.id} {'granted' if granted else 'denied'} consent to '{client_id}'")
    return server.issue_authorization_code(oauth_request, user if granted else None)


@token_router.post("/token", responses={200: {"model": TokenResponse}})
async def issue_token(
    request: Request,
    server: AuthorizationServer = Depends(get_oauth_server),
) -> Response:
    """Troca do authorization code. Os corpos de sucesso e de erro são os do Authlib."""
    try:
        oauth_request = await build_oauth2_request(request, allow_insecure_transport=server.development)
    except OAuth2Error as error:
        logger.warning(f"Token request refused: {error.error}")
        return server.handle_error_response(None, error)
    return server.create_token_response(oauth_request)
