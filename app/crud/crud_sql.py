# oauth_examples/app/crud/crud_sql.py
from typing import Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.models.oauth2_access_token import OAuth2AccessToken
from app.models.oauth2_authorization_code import OAuth2AuthorizationCode
from app.models.oauth2_client import OAuth2Client


class SQLStorage:
    """Mesmo contrato do MemoryStorage, sobre SQLAlchemy. Cada chamada usa a sua sessão."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def _add(self, obj) -> None:
        with self.session_factory() as db:
            db.add(obj)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.error(f"Integrity error storing {obj!r}: {e}")
                raise ValueError(f"Could not store {obj!r}: duplicate value") from e

    # --- Clientes ---
    def add_client(self, client: OAuth2Client) -> None:
        self._add(client)

    def find_client(self, client_id: str) -> Optional[OAuth2Client]:
        with self.session_factory() as db:
            stmt = select(OAuth2Client).where(OAuth2Client.client_id == client_id)
            return db.execute(stmt).scalars().first()

    # --- Códigos de autorização ---
    def save_authorization_code(self, authorization_code: OAuth2AuthorizationCode) -> None:
        self._add(authorization_code)

    def find_authorization_code(self, code: str) -> Optional[OAuth2AuthorizationCode]:
        with self.session_factory() as db:
            stmt = select(OAuth2AuthorizationCode).where(OAuth2AuthorizationCode.code == code)
            return db.execute(stmt).scalars().first()

    def delete_authorization_code(self, code: str) -> bool:
        with self.session_factory() as db:
            stmt = delete(OAuth2AuthorizationCode).where(OAuth2AuthorizationCode.code == code)
            result = db.execute(stmt)
            db.commit()
            return result.rowcount > 0

    # --- Access tokens ---
    def save_access_token(self, access_token: OAuth2AccessToken) -> None:
        self._add(access_token)

    def find_access_token(self, token: str) -> Optional[OAuth2AccessToken]:
        with self.session_factory() as db:
            stmt = select(OAuth2AccessToken).where(OAuth2AccessToken.token == token)
            return db.execute(stmt).scalars().first()
