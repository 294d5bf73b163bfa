from typing import List
from model.account import User
from model.analysis import AnalysisSession
from repository.persistence import PersistenceFacade
from service.activity_service import ActivityService
from util.constants import LogAction
import logging

logger = logging.getLogger(__name__)


class HistoryService:
    def __init__(self, persistence: PersistenceFacade, activity: ActivityService) -> None:
        self._persistence = persistence
        self._activity = activity

    async def get_history(self, user_id: str) -> List[AnalysisSession]:
        return await self._persistence.get_history(user_id)

    async def delete(self, user: User, session_id: str) -> None:
        # Sessions owned by someone else are treated like missing ones
        owned = {s.id for s in await self._persistence.get_history(user.id)}
        if session_id not in owned:
            logger.info("history.delete.skip user=%s session=%s", user.id, session_id)
            return
        await self._persistence.delete_history(session_id)

    async def clear_all(self, user: User) -> None:
        await self._persistence.clear_all_history(user.id)
        await self._activity.record(user, LogAction.VIEW_HISTORY, "Cleared all analysis history")
