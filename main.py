# oauth_examples/main.py
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.middleware.sessions import SessionMiddleware

# --- Imports slowapi (Rate Limiting) ---
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

# --- Imports da aplicação ---
from app.api.endpoints import login, metadata, modular, oauth, protected
from app.core.config import STATIC_DIR, Settings, settings
from app.core.exceptions import LoginRequiredException, OAuth2RedirectError
from app.core.logging import configure_logging
from app.db.initial_data import create_storage, demo_clients
from app.db.session import dispose_engine
from app.oauth2_server import AuthorizationServer
from app.services.auth_service import AuthService


def _build_app(app_settings: Settings, name: str, title: str, description: str) -> FastAPI:
    """Tudo o que os dois exemplos partilham: logging, middleware, handlers de erro, estáticos."""
    configure_logging(app_settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if app_settings.STORAGE_BACKEND == "sql":
            logger.info("Shutting down: disposing database engine...")
            dispose_engine(name)

    app = FastAPI(
        title=title,
        description=description,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if app_settings.development else None,
        redoc_url="/redoc" if app_settings.development else None,
        openapi_url="/openapi.json" if app_settings.development else None,
    )
    app.state.settings = app_settings

    # --- Rate limiting (slowapi, limites por rota) ---
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[app_settings.RATE_LIMIT_DEFAULT],
        enabled=app_settings.RATE_LIMIT_ENABLED,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=app_settings.SESSION_SECRET_KEY,
        session_cookie=app_settings.SESSION_COOKIE_NAME,
        https_only=not app_settings.development,
    )

    # --- Handlers de exceções ---
    @app.exception_handler(LoginRequiredException)
    async def login_required_handler(request: Request, exc: LoginRequiredException):
        return RedirectResponse(app_settings.LOGIN_URL, status_code=status.HTTP_302_FOUND)

    @app.exception_handler(OAuth2RedirectError)
    async def oauth2_redirect_handler(request: Request, exc: OAuth2RedirectError):
        server: AuthorizationServer = request.app.state.oauth2_server
        return server.handle_error_response(None, exc.error)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    return app


def _add_state_middleware(app: FastAPI, populate: Callable[[Request], None]) -> None:
    # --- Middleware para injetar o servidor Authlib (e o storage) em request.state ---
    @app.middleware("http")
    async def add_oauth_state(request: Request, call_next):
        populate(request)
        response = await call_next(request)
        return response


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Exemplo balanced: fluxo de autorização apoiado na sessão."""
    app = _build_app(
        app_settings,
        "balanced",
        title="OAuth Examples (balanced)",
        description="Authorization code + PKCE server with a session login gate and consent dialog",
    )

    storage = create_storage(app_settings, demo_clients(app_settings), name="balanced")
    server = AuthorizationServer(
        storage,
        code_expires_in=app_settings.authorization_code_expires_in,
        token_expires_in=app_settings.access_token_expires_in,
        development=app_settings.development,
    )
    app.state.storage = storage
    app.state.oauth2_server = server

    def populate(request: Request) -> None:
        request.state.oauth2_server = server
        request.state.storage = storage

    _add_state_middleware(app, populate)

    app.include_router(metadata.router, tags=["Metadata"])
    app.include_router(login.router, tags=["Login"])
    app.include_router(oauth.router, prefix="/oauth", tags=["OAuth"])
    app.include_router(oauth.token_router, prefix="/oauth", tags=["OAuth"])
    app.include_router(protected.router, prefix="/api", tags=["Protected"])
    return app


def create_modular_app(app_settings: Settings = settings) -> FastAPI:
    """Exemplo modular: AuthService injetável, o pedido validado viaja no form de consentimento."""
    app = _build_app(
        app_settings,
        "modular",
        title="OAuth Examples (modular)",
        description="Authorization code + PKCE server composed from an injectable AuthService",
    )

    service = AuthService.from_settings(app_settings)
    app.state.auth_service = service
    app.state.storage = service.storage
    app.state.oauth2_server = service.server

    def populate(request: Request) -> None:
        request.state.auth_service = service
        request.state.oauth2_server = service.server
        request.state.storage = service.storage

    _add_state_middleware(app, populate)

    app.include_router(metadata.router, tags=["Metadata"])
    app.include_router(login.router, tags=["Login"])
    app.include_router(modular.router, prefix="/oauth", tags=["OAuth"])
    app.include_router(oauth.token_router, prefix="/oauth", tags=["OAuth"])
    app.include_router(protected.router, prefix="/api", tags=["Protected"])
    return app


app = create_app()
modular_app = create_modular_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.development)
