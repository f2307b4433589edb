from typing import List, Optional, Tuple

from database import AuthClient, Subscription
from logging_config import get_logger
from schemas import AdminUser, Session

logger = get_logger(__name__)

# Provider message substring -> what the admin sees
LOGIN_ERRORS: List[Tuple[str, str]] = [
    ("Invalid login credentials", "Email ou senha incorretos."),
    ("Email not confirmed", "Confirme seu email antes de entrar."),
]
GENERIC_LOGIN_ERROR = "Erro ao fazer login. Tente novamente."


def login_error_message(provider_message: str) -> str:
    for needle, message in LOGIN_ERRORS:
        if needle in provider_message:
            return message
    return GENERIC_LOGIN_ERROR


class SessionState:
    """Current admin session for one consumer.

    start() reads the stored session once and then follows the auth client's
    change events until close(). Usable as an async context manager.
    """

    def __init__(self, auth: AuthClient):
        self._auth = auth
        self.session: Optional[Session] = None
        self.loading = True
        self._subscription: Optional[Subscription] = None

    @property
    def user(self) -> Optional[AdminUser]:
        return self.session.user if self.session else None

    @property
    def authenticated(self) -> bool:
        return self.session is not None

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None

    async def start(self) -> "SessionState":
        self.session = await self._auth.get_session()
        self.loading = False
        self._subscription = self._auth.on_auth_state_change(self._on_auth_change)
        return self

    def _on_auth_change(self, event: str, session: Optional[Session]) -> None:
        logger.debug("auth_state_changed", auth_event=event, signed_in=session is not None)
        self.session = session

    async def sign_in(self, email: str, password: str) -> Optional[str]:
        error = await self._auth.sign_in_with_password(email, password)
        if error is None:
            logger.info("sign_in_succeeded", email=email)
            return None
        logger.info("sign_in_failed", email=email, reason=error.message, status_code=error.status_code)
        return login_error_message(error.message)

    async def sign_out(self) -> None:
        await self._auth.sign_out()

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def __aenter__(self) -> "SessionState":
        return await self.start()

    async def __aexit__(self, *exc) -> None:
        self.close()
