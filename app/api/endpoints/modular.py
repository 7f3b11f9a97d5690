# oauth_examples/app/api/endpoints/modular.py
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response
from loguru import logger
from pydantic import ValidationError

from app.api.dependencies import ensure_login, get_auth_service
from app.core.templating import templates
from app.oauth2_server import AuthorizationRequestState
from app.schemas.oauth2 import AuthorizationRequestMeta
from app.schemas.session import SessionUser
from app.services.auth_service import AuthService

router = APIRouter()


async def authorization_request(
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> AuthorizationRequestState:
    """Middleware ao nível da rota: valida antes de o gate de login correr."""
    return await service.authorize_request(request)


@router.get("/authorize", response_class=HTMLResponse)
async def get_authorization(
    request: Request,
    authorization: AuthorizationRequestState = Depends(authorization_request),
    user: SessionUser = Depends(ensure_login),
):
    # Só os parâmetros do pedido chegam à página; o registo do cliente (e o segredo) nunca
    payload = authorization.meta.model_dump_json(exclude_none=True) if authorization.meta else None
    return templates.TemplateResponse(
        request,
        "dialog.html",
        {
            "user": user,
            "client_name": authorization.client_name,
            "meta": authorization.meta,
            "redirect_uri": authorization.redirect_uri,
            "error": authorization.error,
            "payload": payload,
            "decision_url": request.url_for("modular_authorize_decision").path,
        },
        status_code=status.HTTP_400_BAD_REQUEST if authorization.error else status.HTTP_200_OK,
    )


@router.post("/authorize/decision", name="modular_authorize_decision")
async def on_decision(
    request: Request,
    meta: Optional[str] = Form(None),
    consent: Optional[str] = Form(None),
    user: SessionUser = Depends(ensure_login),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    invalid_meta = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid authorization request meta",
    )
    if not meta:
        raise invalid_meta
    try:
        authorization_meta = AuthorizationRequestMeta.model_validate_json(meta)
    except ValidationError:
        logger.warning("Decision posted with malformed meta")
        raise invalid_meta
    if not authorization_meta.client_id:
        raise invalid_meta

    # O meta vem do browser: o Authlib volta a validar cliente e redirect_uri
    return service.decide(request, authorization_meta, user, consent)
