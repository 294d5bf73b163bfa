from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4
from model.account import DatabaseConfig, LogEntry, User
from model.analysis import AnalysisSession, NewSession, PageAnalysis
from repository.local_store import LocalStore
from repository.namespaces import (
    HISTORY,
    HISTORY_TABLE,
    LOGS,
    LOGS_TABLE,
    USERS,
    USERS_TABLE,
)
from repository.remote_database import PostgrestDatabase, RemoteDatabase, RemoteResult
from util.enums import ErrorKind
from util.errors import PersistenceError
from util.functions import utc_now_iso
import logging

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[DatabaseConfig], RemoteDatabase]


def normalize_email(raw: str) -> str:
    """Emails are stored and matched lower-cased in both modes."""
    return raw.strip().lower()


class StorageBackend:
    """Operations shared by both modes. Owner filtering is part of the contract."""

    mode: str = ""

    async def find_user(self, email: str) -> Optional[User]:
        raise NotImplementedError

    async def insert_user(self, email: str, name: str) -> User:
        raise NotImplementedError

    async def add_log(self, user_id: str, user_name: str, action: str, details: str) -> LogEntry:
        raise NotImplementedError

    async def get_logs(self, user_id: Optional[str] = None) -> List[LogEntry]:
        raise NotImplementedError

    async def save_session(self, session: NewSession) -> AnalysisSession:
        raise NotImplementedError

    async def get_history(self, user_id: str) -> List[AnalysisSession]:
        raise NotImplementedError

    async def delete_history(self, session_id: str) -> None:
        raise NotImplementedError

    async def clear_all_history(self, user_id: str) -> None:
        raise NotImplementedError


def _newest_first(items: List[Any]) -> List[Any]:
    return sorted(items, key=lambda x: x.timestamp, reverse=True)


class LocalBackend(StorageBackend):
    """Degraded mode: capped key-scoped lists in a LocalStore."""

    mode = "local"

    def __init__(self, store: LocalStore, *, history_limit: int, log_limit: int) -> None:
        self._store = store
        self._history_limit = history_limit
        self._log_limit = log_limit

    async def find_user(self, email: str) -> Optional[User]:
        wanted = normalize_email(email)
        for rec in await self._store.read(USERS):
            if str(rec.get("email", "")).lower() == wanted:
                return User.model_validate(rec)
        return None

    async def insert_user(self, email: str, name: str) -> User:
        user = User(
            id=str(uuid4()), email=normalize_email(email), name=name.strip(), createdAt=utc_now_iso()
        )
        await self._store.prepend(USERS, user.model_dump())
        return user

    async def add_log(self, user_id: str, user_name: str, action: str, details: str) -> LogEntry:
        entry = LogEntry(
            id=str(uuid4()),
            userId=user_id,
            userName=user_name,
            action=action,
            details=details,
            timestamp=utc_now_iso(),
        )
        await self._store.prepend(LOGS, entry.model_dump(), limit=self._log_limit)
        return entry

    async def get_logs(self, user_id: Optional[str] = None) -> List[LogEntry]:
        out: List[LogEntry] = []
        for rec in await self._store.read(LOGS):
            if user_id is not None and rec.get("userId") != user_id:
                continue
            out.append(LogEntry.model_validate(rec))
        return _newest_first(out)

    async def save_session(self, session: NewSession) -> AnalysisSession:
        stored = AnalysisSession(
            id=str(uuid4()), timestamp=utc_now_iso(), **session.model_dump()
        )
        await self._store.prepend(HISTORY, stored.model_dump(mode="json"), limit=self._history_limit)
        return stored

    async def get_history(self, user_id: str) -> List[AnalysisSession]:
        out = [
            AnalysisSession.model_validate(rec)
            for rec in await self._store.read(HISTORY)
            if rec.get("userId") == user_id
        ]
        return _newest_first(out)

    async def delete_history(self, session_id: str) -> None:
        await self._store.remove(HISTORY, lambda rec: rec.get("id") == session_id)

    async def clear_all_history(self, user_id: str) -> None:
        await self._store.remove(HISTORY, lambda rec: rec.get("userId") == user_id)


class RemoteBackend(StorageBackend):
    """Remote mode: rows in the users / logs / analysis_history tables."""

    mode = "remote"

    def __init__(self, db: RemoteDatabase) -> None:
        self._db = db

    @staticmethod
    def _unwrap(result: RemoteResult, op: str) -> List[Dict[str, Any]]:
        if result.error is not None:
            logger.warning("persistence.remote.error op=%s", op)
            raise PersistenceError(ErrorKind.REMOTE_UNAVAILABLE, f"{op} failed: {result.error}")
        return result.data or []

    @staticmethod
    def _first(rows: List[Dict[str, Any]], op: str) -> Dict[str, Any]:
        if not rows:
            raise PersistenceError(ErrorKind.REMOTE_UNAVAILABLE, f"{op} returned no row")
        return rows[0]

    @staticmethod
    def _user(row: Dict[str, Any]) -> User:
        return User(
            id=str(row["id"]),
            email=row.get("email") or "",
            name=row.get("name") or "",
            createdAt=str(row.get("created_at") or ""),
        )

    @staticmethod
    def _log(row: Dict[str, Any]) -> LogEntry:
        return LogEntry(
            id=str(row["id"]),
            userId=str(row.get("user_id") or ""),
            userName=row.get("user_name") or "",
            action=row.get("action") or "",
            details=row.get("details") or "",
            timestamp=str(row.get("created_at") or ""),
        )

    @staticmethod
    def _session(row: Dict[str, Any]) -> AnalysisSession:
        return AnalysisSession(
            id=str(row["id"]),
            userId=str(row.get("user_id") or ""),
            projectName=row.get("project_name") or "",
            referenceUrl=row.get("reference_url") or "",
            timestamp=str(row.get("created_at") or ""),
            results=[PageAnalysis.model_validate(r) for r in row.get("results") or []],
        )

    async def find_user(self, email: str) -> Optional[User]:
        rows = self._unwrap(
            await self._db.select(USERS_TABLE, filters={"email": normalize_email(email)}, limit=1),
            "find_user",
        )
        return self._user(rows[0]) if rows else None

    async def insert_user(self, email: str, name: str) -> User:
        rows = self._unwrap(
            await self._db.insert(USERS_TABLE, {"email": normalize_email(email), "name": name.strip()}),
            "insert_user",
        )
        return self._user(self._first(rows, "insert_user"))

    async def add_log(self, user_id: str, user_name: str, action: str, details: str) -> LogEntry:
        rows = self._unwrap(
            await self._db.insert(
                LOGS_TABLE,
                {"user_id": user_id, "user_name": user_name, "action": action, "details": details},
            ),
            "add_log",
        )
        return self._log(self._first(rows, "add_log"))

    async def get_logs(self, user_id: Optional[str] = None) -> List[LogEntry]:
        rows = self._unwrap(
            await self._db.select(
                LOGS_TABLE,
                filters={"user_id": user_id} if user_id is not None else None,
                order=("created_at", True),
            ),
            "get_logs",
        )
        return [self._log(r) for r in rows]

    async def save_session(self, session: NewSession) -> AnalysisSession:
        rows = self._unwrap(
            await self._db.insert(
                HISTORY_TABLE,
                {
                    "user_id": session.userId,
                    "project_name": session.projectName,
                    "reference_url": session.referenceUrl,
                    "results": [r.model_dump(mode="json") for r in session.results],
                },
            ),
            "save_session",
        )
        return self._session(self._first(rows, "save_session"))

    async def get_history(self, user_id: str) -> List[AnalysisSession]:
        rows = self._unwrap(
            await self._db.select(
                HISTORY_TABLE, filters={"user_id": user_id}, order=("created_at", True)
            ),
            "get_history",
        )
        # Re-check ownership so a misbehaving backend cannot leak rows
        return [self._session(r) for r in rows if str(r.get("user_id")) == user_id]

    async def delete_history(self, session_id: str) -> None:
        self._unwrap(
            await self._db.delete(HISTORY_TABLE, filters={"id": session_id}), "delete_history"
        )

    async def clear_all_history(self, user_id: str) -> None:
        self._unwrap(
            await self._db.delete(HISTORY_TABLE, filters={"user_id": user_id}),
            "clear_all_history",
        )


class PersistenceFacade:
    """
    Storage-agnostic entry point. The remote/local decision is made once at
    the start of every public call by `backend()`: remote when a database
    configuration is present and answers the probe, local otherwise. The
    configuration object is explicit and may be replaced at runtime.
    """

    def __init__(
        self,
        db_config: DatabaseConfig,
        local_store: LocalStore,
        *,
        history_limit: int,
        log_limit: int,
        remote_factory: RemoteFactory = PostgrestDatabase,
    ) -> None:
        self._db_config = db_config
        self._local = LocalBackend(local_store, history_limit=history_limit, log_limit=log_limit)
        self._remote_factory = remote_factory

    @property
    def db_config(self) -> DatabaseConfig:
        return self._db_config

    def configure(self, url: str, key: str) -> None:
        self._db_config = DatabaseConfig(url=url.strip(), key=key.strip())
        logger.info("persistence.configure remote_present=%s", self._db_config.is_present())

    async def backend(self) -> StorageBackend:
        config = self._db_config.model_copy()
        if not config.is_present():
            return self._local
        remote = self._remote_factory(config)
        if await remote.ping():
            return RemoteBackend(remote)
        logger.warning("persistence.remote.unreachable fallback=local")
        return self._local

    async def mode(self) -> str:
        return (await self.backend()).mode

    async def find_user(self, email: str) -> Optional[User]:
        return await (await self.backend()).find_user(email)

    async def create_user(self, email: str, name: str) -> User:
        backend = await self.backend()
        if await backend.find_user(email) is not None:
            raise PersistenceError(ErrorKind.USER_EXISTS, "User already exists")
        return await backend.insert_user(email, name)

    async def add_log(self, user_id: str, user_name: str, action: str, details: str) -> LogEntry:
        return await (await self.backend()).add_log(user_id, user_name, action, details)

    async def get_logs(self, user_id: Optional[str] = None) -> List[LogEntry]:
        return await (await self.backend()).get_logs(user_id)

    async def save_session(self, session: NewSession) -> AnalysisSession:
        backend = await self.backend()
        stored = await backend.save_session(session)
        logger.info(
            "persistence.session.saved mode=%s session=%s pages=%d",
            backend.mode,
            stored.id,
            len(stored.results),
        )
        return stored

    async def get_history(self, user_id: str) -> List[AnalysisSession]:
        return await (await self.backend()).get_history(user_id)

    async def delete_history(self, session_id: str) -> None:
        await (await self.backend()).delete_history(session_id)

    async def clear_all_history(self, user_id: str) -> None:
        await (await self.backend()).clear_all_history(user_id)
