from typing import Any, Dict, List, NamedTuple, Optional, Tuple
import httpx
from config.settings import settings
from model.account import DatabaseConfig
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


class RemoteResult(NamedTuple):
    data: Optional[List[Dict[str, Any]]]
    error: Optional[str]


class RemoteDatabase:
    """Table-like collaborator contract: every call returns (data, error)."""

    async def ping(self) -> bool:
        raise NotImplementedError

    async def select(
        self,
        table: str,
        *,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Tuple[str, bool]] = None,
        limit: Optional[int] = None,
    ) -> RemoteResult:
        raise NotImplementedError

    async def insert(self, table: str, row: Dict[str, Any]) -> RemoteResult:
        raise NotImplementedError

    async def delete(self, table: str, *, filters: Dict[str, Any]) -> RemoteResult:
        raise NotImplementedError


class PostgrestDatabase(RemoteDatabase):
    """
    Supabase's PostgREST endpoint (`<url>/rest/v1/<table>`) over httpx.
    Transport and HTTP failures are folded into the `error` slot; nothing
    raises past this class.
    """

    def __init__(
        self,
        config: DatabaseConfig,
        *,
        timeout: float = settings.REMOTE_TIMEOUT_SECONDS,
        probe_timeout: float = settings.REMOTE_PROBE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base = f"{config.url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": config.key,
            "Authorization": f"Bearer {config.key}",
            "content-type": "application/json",
        }
        self._timeout = timeout
        self._probe_timeout = probe_timeout
        self._transport = transport

    @staticmethod
    def _eq_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
        return {k: f"eq.{v}" for k, v in (filters or {}).items()}

    @staticmethod
    def _error_text(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return f"HTTP {resp.status_code}"
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or f"HTTP {resp.status_code}")
        return f"HTTP {resp.status_code}"

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> RemoteResult:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            with timed(logger, "remote.query", method=method, table=table):
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport
                ) as client:
                    resp = await client.request(
                        method, f"{self._base}/{table}", params=params, json=json, headers=headers
                    )
        except httpx.RequestError as e:
            return RemoteResult(None, f"{type(e).__name__}: database unreachable")

        if resp.status_code // 100 != 2:
            return RemoteResult(None, self._error_text(resp))
        if not resp.content:
            return RemoteResult([], None)
        try:
            body = resp.json()
        except ValueError:
            return RemoteResult(None, "database returned a non-JSON body")
        if isinstance(body, dict):
            body = [body]
        return RemoteResult(body if isinstance(body, list) else [], None)

    async def ping(self) -> bool:
        try:
            async with httpx.AsyncClient(
                timeout=self._probe_timeout, transport=self._transport
            ) as client:
                resp = await client.get(f"{self._base}/", headers=self._headers)
        except httpx.RequestError as e:
            logger.warning("remote.ping.error err=%s", type(e).__name__)
            return False
        return resp.status_code // 100 == 2

    async def select(
        self,
        table: str,
        *,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Tuple[str, bool]] = None,
        limit: Optional[int] = None,
    ) -> RemoteResult:
        params = {"select": "*", **self._eq_filters(filters)}
        if order:
            column, descending = order
            params["order"] = f"{column}.{'desc' if descending else 'asc'}"
        if limit:
            params["limit"] = str(limit)
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, row: Dict[str, Any]) -> RemoteResult:
        return await self._request(
            "POST", table, json=[row], prefer="return=representation"
        )

    async def delete(self, table: str, *, filters: Dict[str, Any]) -> RemoteResult:
        # PostgREST refuses unfiltered deletes; callers always pass filters
        return await self._request(
            "DELETE", table, params=self._eq_filters(filters), prefer="return=minimal"
        )
