# core/analysis_pipeline.py
import asyncio
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence
from uuid import uuid4
from config.settings import settings
from core.discrepancy_mapper import map_discrepancies
from model.analysis import (
    AnalysisRun,
    ComparisonResult,
    NewSession,
    PageAnalysis,
    PageStatus,
)
from model.document import DocumentDescriptor, ResolvedContent
from model.provider import ProviderConfig
from repository.persistence import PersistenceFacade
from util.constants import (
    DEFAULT_PROJECT_NAME,
    MANUAL_REFERENCE_LABEL,
    MANUAL_RESULT_URL,
    MANUAL_TARGET_LABEL,
)
from util.enums import ErrorKind
from util.errors import AuditError
from util.functions import utc_now_iso
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    async def resolve(
        self, descriptor: DocumentDescriptor, scrape_credential: Optional[str]
    ) -> ResolvedContent: ...


class Comparator(Protocol):
    async def compare(
        self,
        reference_content: str,
        target_content: str,
        target_label: str,
        reference_label: str,
        config: ProviderConfig,
        reference_screenshot: Optional[str] = None,
        target_screenshot: Optional[str] = None,
    ) -> ComparisonResult: ...


@dataclass
class SessionOwner:
    user_id: str
    user_name: str = ""


class _Skipped:
    """Sentinel for targets that produce no result entry."""


_SKIPPED = _Skipped()
_CANCELLED = _Skipped()


def _error_result(result_id: str, url: str, err: AuditError) -> PageAnalysis:
    return PageAnalysis(
        id=result_id,
        url=url,
        timestamp=utc_now_iso(),
        status=PageStatus.ERROR,
        complianceScore=0,
        discrepancies=[],
        rawText=f"{err.kind.value}: {err.message}",
    )


class AnalysisOrchestrator:
    """
    Run flow:
      INIT -> RESOLVING_REFERENCE
           -> per target: RESOLVING_TARGET -> COMPARING -> DONE | TARGET_ERROR
           -> AGGREGATED -> PERSISTING (best-effort) -> COMPLETE

    Only the two pre-flight checks abort a run. Every per-target failure
    becomes an ERROR PageAnalysis; targets with nothing to resolve are skipped.
    Results keep target input order whatever the completion order.
    """

    def __init__(
        self,
        resolver: Resolver,
        comparator: Comparator,
        persistence: Optional[PersistenceFacade] = None,
        concurrency: int = settings.ANALYSIS_CONCURRENCY,
    ) -> None:
        self._resolver = resolver
        self._comparator = comparator
        self._persistence = persistence
        self._concurrency = max(1, concurrency)

    async def _resolve_reference(
        self, reference: DocumentDescriptor, scrape_credential: Optional[str]
    ) -> ResolvedContent:
        logger.info("analysis.state state=RESOLVING_REFERENCE")
        try:
            resolved = await self._resolver.resolve(reference, scrape_credential)
        except AuditError as e:
            raise AuditError(
                ErrorKind.MISSING_REFERENCE,
                f"Reference content is missing ({e.message})",
                detail=e.kind.value,
            ) from e
        if not resolved.content.strip():
            raise AuditError(ErrorKind.MISSING_REFERENCE, "Reference content is missing")
        return resolved

    async def _process_target(
        self,
        index: int,
        target: DocumentDescriptor,
        reference: DocumentDescriptor,
        ref: ResolvedContent,
        config: ProviderConfig,
        scrape_credential: Optional[str],
        sem: asyncio.Semaphore,
        cancel: Optional[asyncio.Event],
    ):
        if not target.has_content() and not target.has_url():
            logger.info("analysis.target.skip index=%d reason=empty", index)
            return _SKIPPED

        result_id = target.id or str(uuid4())
        url = (target.url or "").strip() or MANUAL_RESULT_URL

        async with sem:
            # Cooperative checkpoint before any work for this target
            if cancel is not None and cancel.is_set():
                logger.info("analysis.target.cancelled index=%d", index)
                return _CANCELLED

            try:
                resolved = await self._resolver.resolve(target, scrape_credential)
            except AuditError as e:
                if e.kind == ErrorKind.MISSING_CONTENT:
                    logger.info("analysis.target.skip index=%d reason=no_content", index)
                    return _SKIPPED
                logger.warning("analysis.target.error index=%d stage=resolve kind=%s", index, e.kind.value)
                return _error_result(result_id, url, e)
            except Exception as e:
                logger.exception("analysis.target.unexpected index=%d stage=resolve", index)
                return _error_result(
                    result_id,
                    url,
                    AuditError(ErrorKind.SCRAPE_FAILED, str(e) or type(e).__name__),
                )

            try:
                with timed(logger, "analysis.target.compare", index=index):
                    comparison = await self._comparator.compare(
                        ref.content,
                        resolved.content,
                        (target.url or "").strip() or MANUAL_TARGET_LABEL,
                        (reference.url or "").strip() or MANUAL_REFERENCE_LABEL,
                        config,
                        ref.screenshot,
                        resolved.screenshot,
                    )
                discrepancies = map_discrepancies(result_id, comparison.discrepancies)
            except AuditError as e:
                logger.warning("analysis.target.error index=%d stage=compare kind=%s", index, e.kind.value)
                return _error_result(result_id, url, e)
            except Exception as e:
                logger.exception("analysis.target.unexpected index=%d", index)
                return _error_result(
                    result_id, url, AuditError(ErrorKind.PROVIDER_ERROR, str(e) or type(e).__name__)
                )

        status = PageStatus.COMPLIANT if not discrepancies else PageStatus.NON_COMPLIANT
        return PageAnalysis(
            id=result_id,
            url=url,
            timestamp=utc_now_iso(),
            status=status,
            complianceScore=comparison.complianceScore,
            discrepancies=discrepancies,
            rawText=resolved.content,
            screenshot=resolved.screenshot,
        )

    async def _persist(
        self,
        results: List[PageAnalysis],
        owner: SessionOwner,
        project_name: str,
        reference_url: str,
    ) -> Optional[str]:
        logger.info("analysis.state state=PERSISTING pages=%d", len(results))
        try:
            stored = await self._persistence.save_session(  # type: ignore[union-attr]
                NewSession(
                    userId=owner.user_id,
                    projectName=project_name,
                    referenceUrl=reference_url,
                    results=results,
                )
            )
        except AuditError as e:
            logger.warning("analysis.persist.failed kind=%s", e.kind.value)
            return None
        except Exception:
            logger.error("analysis.persist.failed", exc_info=True)
            return None
        return stored.id

    async def run(
        self,
        reference: DocumentDescriptor,
        targets: Sequence[DocumentDescriptor],
        config: ProviderConfig,
        *,
        scrape_credential: Optional[str] = None,
        owner: Optional[SessionOwner] = None,
        project_name: str = DEFAULT_PROJECT_NAME,
        cancel: Optional[asyncio.Event] = None,
    ) -> AnalysisRun:
        logger.info("analysis.state state=INIT targets=%d provider=%s", len(targets), config.provider)
        if not (config.apiKey or "").strip():
            raise AuditError(ErrorKind.MISSING_CREDENTIAL, "Missing AI API key")

        ref = await self._resolve_reference(reference, scrape_credential)

        sem = asyncio.Semaphore(self._concurrency)
        with timed(logger, "analysis.targets", n=len(targets)):
            outcomes = await asyncio.gather(
                *(
                    self._process_target(
                        i, t, reference, ref, config, scrape_credential, sem, cancel
                    )
                    for i, t in enumerate(targets)
                )
            )

        results = [o for o in outcomes if isinstance(o, PageAnalysis)]
        cancelled = any(o is _CANCELLED for o in outcomes)
        logger.info(
            "analysis.state state=AGGREGATED results=%d errors=%d cancelled=%s",
            len(results),
            sum(1 for r in results if r.status == PageStatus.ERROR),
            cancelled,
        )

        session_id = None
        if results and owner is not None and self._persistence is not None and not cancelled:
            session_id = await self._persist(
                results,
                owner,
                (project_name or "").strip() or DEFAULT_PROJECT_NAME,
                (reference.url or "").strip(),
            )

        logger.info("analysis.state state=COMPLETE saved=%s", session_id is not None)
        return AnalysisRun(
            results=results,
            sessionId=session_id,
            saved=session_id is not None,
            cancelled=cancelled,
        )
