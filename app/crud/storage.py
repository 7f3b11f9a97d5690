# oauth_examples/app/crud/storage.py
from typing import Optional, Protocol, runtime_checkable

from app.models.oauth2_access_token import OAuth2AccessToken
from app.models.oauth2_authorization_code import OAuth2AuthorizationCode
from app.models.oauth2_client import OAuth2Client


@runtime_checkable
class OAuthStorage(Protocol):
    """
    Operações que a camada OAuth precisa de um armazenamento. Os callbacks do
    Authlib só falam com esta interface, por isso a cache em memória pode ser
    trocada por uma base de dados real sem mexer nas rotas.
    """

    def add_client(self, client: OAuth2Client) -> None: ...

    def find_client(self, client_id: str) -> Optional[OAuth2Client]: ...

    def save_authorization_code(self, authorization_code: OAuth2AuthorizationCode) -> None: ...

    def find_authorization_code(self, code: str) -> Optional[OAuth2AuthorizationCode]: ...

    def delete_authorization_code(self, code: str) -> bool: ...

    def save_access_token(self, access_token: OAuth2AccessToken) -> None: ...

    def find_access_token(self, token: str) -> Optional[OAuth2AccessToken]: ...
