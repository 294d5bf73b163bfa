from typing import Optional
from model.account import User
from repository.persistence import PersistenceFacade
from service.activity_service import ActivityService
from util.constants import LogAction
from util.enums import ErrorKind
from util.errors import PersistenceError
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Single in-memory session per process. There is no password: identity
    is the email address, as in the original local/demo deployment.

    `auto_register` controls whether login of an unknown email creates the
    account in local (degraded) mode. It is off by default; remote mode
    never auto-creates.
    """

    def __init__(
        self,
        persistence: PersistenceFacade,
        activity: ActivityService,
        *,
        auto_register: bool = False,
    ) -> None:
        self._persistence = persistence
        self._activity = activity
        self._auto_register = auto_register
        self._current: Optional[User] = None

    def current_user(self) -> Optional[User]:
        return self._current

    async def register(self, email: str, name: str) -> User:
        user = await self._persistence.create_user(email, name)
        self._current = user
        logger.info("auth.register user=%s", user.id)
        await self._activity.record(user, LogAction.REGISTER, "User registered")
        return user

    async def login(self, email: str) -> User:
        backend = await self._persistence.backend()
        user = await backend.find_user(email)
        if user is None:
            if not (self._auto_register and backend.mode == "local"):
                raise PersistenceError(ErrorKind.USER_NOT_FOUND, "User not found")
            user = await backend.insert_user(email, email.split("@", 1)[0])
            logger.info("auth.login.auto_registered user=%s", user.id)
        self._current = user
        logger.info("auth.login user=%s mode=%s", user.id, backend.mode)
        await self._activity.record(user, LogAction.LOGIN, "User logged in")
        return user

    async def logout(self) -> None:
        user = self._current
        if user is None:
            return
        await self._activity.record(user, LogAction.LOGOUT, "User logged out")
        self._current = None
        logger.info("auth.logout user=%s", user.id)
