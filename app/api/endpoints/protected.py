# oauth_examples/app/api/endpoints/protected.py
from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_access_token
from app.models.oauth2_access_token import OAuth2AccessToken
from app.schemas.oauth2 import ProtectedResourceResponse

router = APIRouter()


@router.get("/protected", response_model=ProtectedResourceResponse)
async def read_protected(
    access_token: OAuth2AccessToken = Depends(get_current_access_token),
):
    """Aceita um bearer token válido (header ou ?access_token=) e descreve-o."""
    return ProtectedResourceResponse(
        client_id=access_token.client_id,
        user_id=access_token.user_id,
        scope=access_token.scope,
        expires_at=access_token.expires_at,
    )
