from typing import List, Optional
from model.account import LogEntry, User
from repository.persistence import PersistenceFacade
from util.constants import LogAction
from util.functions import clip_words
import logging

logger = logging.getLogger(__name__)


class ActivityService:
    """
    Append-only activity log. `record` is best-effort: a failed write is
    logged and dropped so it never breaks the operation being logged.
    """

    def __init__(self, persistence: PersistenceFacade) -> None:
        self._persistence = persistence

    async def record(self, user: Optional[User], action: str, details: str) -> Optional[LogEntry]:
        if user is None:
            return None
        try:
            return await self._persistence.add_log(user.id, user.name, action, details)
        except Exception as e:
            logger.warning("activity.record.failed action=%s err=%s", action, type(e).__name__)
            return None

    async def list(self, user_id: Optional[str] = None) -> List[LogEntry]:
        return await self._persistence.get_logs(user_id)

    async def feedback(
        self, user: User, discrepancy_id: str, is_accurate: bool, details: str
    ) -> Optional[LogEntry]:
        action = LogAction.FEEDBACK_CONFIRMED if is_accurate else LogAction.FEEDBACK_REJECTED
        verdict = "CORRECT" if is_accurate else "FALSE POSITIVE"
        return await self.record(
            user,
            action,
            f"User marked discrepancy ({discrepancy_id}) as {verdict}. Context: {clip_words(details, 40)}",
        )
