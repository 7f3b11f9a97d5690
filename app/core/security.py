# oauth_examples/app/core/security.py
import secrets
import uuid

from passlib.context import CryptContext  # type: ignore

# pbkdf2 evita depender do backend bcrypt (opcional) do passlib
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# --- Segredos de clientes ---
def hash_client_secret(client_secret: str) -> str:
    return pwd_context.hash(client_secret)


def verify_client_secret(plain_secret: str, hashed_secret: str) -> bool:
    try:
        return pwd_context.verify(plain_secret, hashed_secret)
    except (ValueError, TypeError):
        # Hash mal formado ou valor que não é string
        return False


# --- Valores de códigos / tokens ---
def generate_uuid_token() -> str:
    """Valor UUID4 opaco, usado nos access tokens e nos códigos do exemplo balanced."""
    return str(uuid.uuid4())


def generate_hex_code() -> str:
    """16 bytes aleatórios em hex, usados nos códigos do exemplo modular."""
    return secrets.token_hex(16)
