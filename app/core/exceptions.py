# oauth_examples/app/core/exceptions.py
from authlib.oauth2 import OAuth2Error


class LoginRequiredException(Exception):
    """Levantada pelo gate de sessão quando o pedido não traz utilizador autenticado."""

    def __init__(self, redirect_to: str):
        self.redirect_to = redirect_to
        super().__init__(f"Login required before accessing {redirect_to}")


class OAuth2RedirectError(Exception):
    """
    Embrulha um erro do Authlib que já conhece um redirect_uri validado: o
    user agent volta ao cliente com o erro na query string.
    """

    def __init__(self, error: OAuth2Error):
        self.error = error
        super().__init__(error.error)
