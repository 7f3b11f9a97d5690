# oauth_examples/app/db/initial_data.py
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from app.core.config import Settings
from app.core.security import hash_client_secret
from app.crud.crud_memory import MemoryStorage
from app.crud.crud_sql import SQLStorage
from app.crud.storage import OAuthStorage
from app.db.session import get_engine, get_session_factory, init_db
from app.models.oauth2_client import OAuth2Client


def build_client(
    client_id: str,
    redirect_uris: Sequence[str],
    client_secret: Optional[str] = None,
    client_name: Optional[str] = None,
    scope: Optional[str] = None,
) -> OAuth2Client:
    """Cria um cliente (ainda não gravado); o segredo fica só em hash."""
    return OAuth2Client(
        client_id=client_id,
        client_secret_hash=hash_client_secret(client_secret) if client_secret else None,
        client_name=client_name or client_id,
        redirect_uris_str=" ".join(redirect_uris),
        scope_str=scope,
        response_types_str="code",
        grant_types_str="authorization_code",
    )


def demo_clients(settings: Settings) -> List[OAuth2Client]:
    return [
        build_client(
            settings.DEMO_CLIENT_ID,
            [settings.DEMO_REDIRECT_URI],
            client_secret=settings.DEMO_CLIENT_SECRET,
            client_name=settings.DEMO_CLIENT_NAME,
        )
    ]


def modular_clients(settings: Settings) -> List[OAuth2Client]:
    return [
        build_client(
            settings.MODULAR_CLIENT_ID,
            [settings.MODULAR_REDIRECT_URI],
            client_secret=settings.MODULAR_CLIENT_SECRET,
            client_name=settings.MODULAR_CLIENT_NAME,
        )
    ]


def create_storage(
    settings: Settings,
    clients: Iterable[OAuth2Client] = (),
    *,
    name: str = "balanced",
    database_url: Optional[str] = None,
) -> OAuthStorage:
    """Cria o backend configurado e regista `clients` nele.

    `name` identifica o exemplo dono do armazenamento; no backend SQL cada
    nome tem a sua engine, por isso os registos de clientes ficam separados.
    """
    storage: OAuthStorage
    if settings.STORAGE_BACKEND == "sql":
        engine = get_engine(database_url or settings.DATABASE_URL, name=name)
        init_db(engine)
        storage = SQLStorage(get_session_factory(engine))
    else:
        storage = MemoryStorage()

    for client in clients:
        if storage.find_client(client.client_id) is not None:
            logger.info(f"Client '{client.client_id}' already registered, skipping")
            continue
        storage.add_client(client)
        logger.info(f"Registered client '{client.client_id}' ({name}, {settings.STORAGE_BACKEND} storage)")
    return storage
