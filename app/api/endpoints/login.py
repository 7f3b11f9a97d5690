# oauth_examples/app/api/endpoints/login.py
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from loguru import logger

from app.api.dependencies import get_session_context, save_session_context
from app.core.templating import templates
from app.schemas.session import SessionContext, SessionUser

router = APIRouter()


@router.get("/oauth/login", response_class=HTMLResponse)
async def login_form(request: Request):
    return templates.TemplateResponse(request, "login.html", {"action": request.url_for("login").path})


@router.post("/login", name="login")
async def login(
    request: Request,
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    context: SessionContext = Depends(get_session_context),
):
    """
    Login de demonstração: as credenciais só têm de estar presentes, nunca são
    verificadas. Cada login inventa um novo id de utilizador.
    """
    if not email or not password:
        logger.warning("Login attempt with missing email or password")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Email and password are required")

    context.user = SessionUser(id=str(uuid.uuid4()), email=email)
    # Só o gate escreve redirect_to, por isso o destino é sempre do próprio servidor
    redirect_to = context.redirect_to or "/"
    context.redirect_to = None  # consumido pelo login
    save_session_context(request, context)

    logger.info(f"User {context.user.id} logged in as {email}, continuing to {redirect_to}")
    return RedirectResponse(redirect_to, status_code=status.HTTP_302_FOUND)
