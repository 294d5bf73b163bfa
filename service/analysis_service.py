# service/analysis_service.py
import asyncio
from typing import Optional, Sequence
from config.settings import settings
from core.analysis_pipeline import AnalysisOrchestrator, SessionOwner
from core.content_resolver import ContentResolver
from model.account import User
from model.analysis import AnalysisRun
from model.document import DocumentDescriptor, ResolvedContent
from model.provider import ProviderConfig
from service.activity_service import ActivityService
from util.constants import DEFAULT_PROJECT_NAME, LogAction
from util.errors import AuditError
import logging

logger = logging.getLogger(__name__)


class AnalysisService:
    """
    Application-facing wrapper around the orchestrator: picks the scrape
    credential, attaches the session owner and writes the activity log.
    """

    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        resolver: ContentResolver,
        activity: ActivityService,
        default_scrape_key: str = settings.FIRECRAWL_API_KEY,
    ) -> None:
        self._orchestrator = orchestrator
        self._resolver = resolver
        self._activity = activity
        self._default_scrape_key = default_scrape_key

    def _scrape_key(self, override: Optional[str]) -> Optional[str]:
        return (override or "").strip() or self._default_scrape_key or None

    async def resolve_content(
        self,
        descriptor: DocumentDescriptor,
        scrape_key: Optional[str] = None,
        user: Optional[User] = None,
    ) -> ResolvedContent:
        resolved = await self._resolver.resolve(descriptor, self._scrape_key(scrape_key))
        if resolved.scraped:
            await self._activity.record(user, LogAction.SCRAPE_URL, f"Scraped {descriptor.url}")
        return resolved

    async def analyze(
        self,
        reference: DocumentDescriptor,
        targets: Sequence[DocumentDescriptor],
        config: ProviderConfig,
        *,
        user: Optional[User] = None,
        scrape_key: Optional[str] = None,
        project_name: str = DEFAULT_PROJECT_NAME,
        cancel: Optional[asyncio.Event] = None,
    ) -> AnalysisRun:
        await self._activity.record(
            user,
            LogAction.ANALYSIS_RUN,
            f"Started analysis of {len(targets)} page(s) with {config.provider}",
        )
        owner = SessionOwner(user.id, user.name) if user is not None else None
        try:
            run = await self._orchestrator.run(
                reference,
                targets,
                config,
                scrape_credential=self._scrape_key(scrape_key),
                owner=owner,
                project_name=project_name,
                cancel=cancel,
            )
        except AuditError as e:
            await self._activity.record(user, LogAction.ANALYSIS_RUN, f"Analysis failed: {e.message}")
            raise

        summary = run.summary
        logger.info(
            "analysis.service.done pages=%d compliant=%d saved=%s",
            summary.total,
            summary.compliant,
            run.saved,
        )
        await self._activity.record(
            user,
            LogAction.ANALYSIS_RUN,
            f"Completed analysis of {summary.total} page(s)",
        )
        return run
