# oauth_examples/app/db/session.py
from typing import Dict, Optional, Tuple

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base

# Cache de engines por (nome do exemplo, URL): cada exemplo tem a sua base
_engines: Dict[Tuple[str, str], Engine] = {}


def get_engine(database_url: str, name: str = "default") -> Engine:
    """Devolve (e guarda em cache) uma engine síncrona para `database_url`.

    O Authlib chama os callbacks de armazenamento de forma síncrona, por isso
    o store SQL usa a sessão ORM normal e não a extensão asyncio.
    `name` separa as engines dos dois exemplos: com o mesmo URL em memória
    cada um continua a ter a sua própria base.
    """
    key = (name, database_url)
    engine = _engines.get(key)
    if engine is not None:
        return engine

    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # Uma única conexão partilhada, senão cada checkout vê uma base vazia
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url, pool_pre_ping=True)

    _engines[key] = engine
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    # Importar os modelos para que fiquem registados em Base.metadata
    from app.models import oauth2_access_token, oauth2_authorization_code, oauth2_client  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ensured on {engine.url.render_as_string(hide_password=True)}")


def dispose_engine(name: Optional[str] = None) -> None:
    """Liberta as engines de `name` (ou todas, sem nome)."""
    keys = [key for key in _engines if name is None or key[0] == name]
    for key in keys:
        engine = _engines.pop(key)
        engine.dispose()
        logger.info(f"Database engine disposed ({key[0]}: {key[1]})")
