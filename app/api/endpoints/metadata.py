# oauth_examples/app/api/endpoints/metadata.py
from authlib.oauth2.rfc7636 import CodeChallenge
from fastapi import APIRouter, Depends, Request

from app.api.dependencies import get_settings
from app.core.config import Settings
from app.oauth2_server import TOKEN_ENDPOINT_AUTH_METHODS
from app.schemas.oauth2 import AuthorizationServerMetadata

router = APIRouter()


@router.get("/")
def read_root(request: Request):
    return {"message": f"{request.app.title} is running!"}


@router.get("/.well-known/oauth-authorization-server", response_model=AuthorizationServerMetadata)
async def authorization_server_metadata(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """Metadados RFC 8414 deste servidor."""
    issuer = (settings.ISSUER or str(request.base_url)).rstrip("/")
    return AuthorizationServerMetadata(
        issuer=issuer,
        authorization_endpoint=f"{issuer}/oauth/authorize",
        token_endpoint=f"{issuer}/oauth/token",
        response_types_supported=["code"],
        grant_types_supported=["authorization_code"],
        code_challenge_methods_supported=list(CodeChallenge.SUPPORTED_CODE_CHALLENGE_METHOD),
        token_endpoint_auth_methods_supported=list(TOKEN_ENDPOINT_AUTH_METHODS),
    )
