# oauth_examples/app/schemas/session.py
from typing import Dict, Optional

from pydantic import BaseModel

# Chave onde o contexto vive dentro de request.session do Starlette
SESSION_CONTEXT_KEY = "oauth_examples"


class SessionUser(BaseModel):
    """A identidade inventada pelo handler de login."""
    id: str
    email: Optional[str] = None


class SessionContext(BaseModel):
    """
    Vista por pedido da sessão do browser. Carregada por uma dependência,
    alterada pelos handlers e gravada de volta de forma explícita.
    """
    user: Optional[SessionUser] = None
    # URL original para onde voltar depois do login
    redirect_to: Optional[str] = None
    # Parâmetros do pedido de autorização validado (exemplo balanced)
    authorization_request: Optional[Dict[str, str]] = None
    # Último erro de validação visível: {"error": ..., "error_description": ...}
    error: Optional[Dict[str, str]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
