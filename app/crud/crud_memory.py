# oauth_examples/app/crud/crud_memory.py
from typing import Iterable, List, Optional

from loguru import logger

from app.models.oauth2_access_token import OAuth2AccessToken
from app.models.oauth2_authorization_code import OAuth2AuthorizationCode
from app.models.oauth2_client import OAuth2Client


class MemoryStorage:
    """
    Cache/BD de demonstração: três listas simples percorridas linearmente.

    Nada é persistido e nada é bloqueado. Os callbacks correm na thread do
    event loop, que é a única coisa a serializar o acesso às listas.
    """

    def __init__(self, clients: Optional[Iterable[OAuth2Client]] = None):
        self.clients: List[OAuth2Client] = list(clients or [])
        self.authorization_codes: List[OAuth2AuthorizationCode] = []
        self.access_tokens: List[OAuth2AccessToken] = []

    # --- Clientes ---
    def add_client(self, client: OAuth2Client) -> None:
        if self.find_client(client.client_id) is not None:
            raise ValueError(f"Client '{client.client_id}' is already registered")
        self.clients.append(client)

    def find_client(self, client_id: str) -> Optional[OAuth2Client]:
        return next((record for record in self.clients if record.client_id == client_id), None)

    # --- Códigos de autorização ---
    def save_authorization_code(self, authorization_code: OAuth2AuthorizationCode) -> None:
        self.authorization_codes.append(authorization_code)

    def find_authorization_code(self, code: str) -> Optional[OAuth2AuthorizationCode]:
        return next((record for record in self.authorization_codes if record.code == code), None)

    def delete_authorization_code(self, code: str) -> bool:
        for idx, record in enumerate(self.authorization_codes):
            if record.code == code:
                del self.authorization_codes[idx]
                return True
        logger.warning("Authorization code to delete was not found in the cache")
        return False

    # --- Access tokens ---
    def save_access_token(self, access_token: OAuth2AccessToken) -> None:
        self.access_tokens.append(access_token)

    def find_access_token(self, token: str) -> Optional[OAuth2AccessToken]:
        return next((record for record in self.access_tokens if record.token == token), None)
