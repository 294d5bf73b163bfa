from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pytest

from core.analysis_pipeline import AnalysisOrchestrator, SessionOwner
from core.content_resolver import ContentResolver
from core.scraper_client import ScrapeResult
from model.analysis import ComparisonResult, NewSession, PageStatus, RawDiscrepancy
from model.document import DocumentDescriptor
from model.provider import ProviderConfig
from util.enums import ErrorKind
from util.errors import AuditError, PersistenceError, ProviderError

CONFIG = ProviderConfig(provider="GEMINI", apiKey="g-key")
REFERENCE = DocumentDescriptor(content="Price: $500,000\nLocation: Dubai Marina")


# -----------------------------
# Test doubles
# -----------------------------
class FakeScraper:
    def __init__(self, pages: Optional[Dict[str, str]] = None):
        self.pages = pages or {}
        self.calls: List[str] = []

    async def scrape(self, url: str, credential: str) -> ScrapeResult:
        self.calls.append(url)
        return ScrapeResult(markdown=self.pages.get(url, "scraped"))


def price_discrepancy(severity: str = "CRITICAL") -> RawDiscrepancy:
    return RawDiscrepancy(
        field="Price",
        referenceValue="$500,000",
        foundValue="$450,000",
        severity=severity,
        description="Price differs from the reference",
        suggestion="Use $500,000",
    )


class FakeComparator:
    """
    Answers by target content: contains "$450,000" -> one price discrepancy,
    anything else -> clean. `errors` maps target content to an exception.
    """

    def __init__(self, errors: Optional[Dict[str, Exception]] = None, delays: Optional[Dict[str, float]] = None):
        self.calls: List[str] = []
        self.errors = errors or {}
        self.delays = delays or {}
        self.on_call = None

    async def compare(
        self,
        reference_content,
        target_content,
        target_label,
        reference_label,
        config,
        reference_screenshot=None,
        target_screenshot=None,
    ) -> ComparisonResult:
        self.calls.append(target_content)
        if self.on_call is not None:
            self.on_call(target_content)
        await asyncio.sleep(self.delays.get(target_content, 0))
        if target_content in self.errors:
            raise self.errors[target_content]
        if "$450,000" in target_content:
            return ComparisonResult(complianceScore=60, discrepancies=[price_discrepancy()])
        return ComparisonResult(complianceScore=100, discrepancies=[])


class FakePersistence:
    def __init__(self, fail: bool = False):
        self.saved: List[NewSession] = []
        self.fail = fail

    async def save_session(self, session: NewSession):
        if self.fail:
            raise PersistenceError(ErrorKind.REMOTE_UNAVAILABLE, "database down")
        self.saved.append(session)

        class _Stored:
            id = "session-1"

        return _Stored()


def make_orchestrator(comparator=None, scraper=None, persistence=None, concurrency=4):
    return AnalysisOrchestrator(
        ContentResolver(scraper or FakeScraper()),
        comparator or FakeComparator(),
        persistence,
        concurrency=concurrency,
    )


def run(orch: AnalysisOrchestrator, targets, **kw):
    kw.setdefault("scrape_credential", "fc-key")
    return asyncio.run(orch.run(kw.pop("reference", REFERENCE), targets, kw.pop("config", CONFIG), **kw))


# -----------------------------
# Scenarios
# -----------------------------
def test_price_mismatch_is_non_compliant_with_one_discrepancy():
    out = run(make_orchestrator(), [DocumentDescriptor(id="t1", content="Price: $450,000")])

    assert len(out.results) == 1
    page = out.results[0]
    assert page.status == PageStatus.NON_COMPLIANT
    assert page.complianceScore == 60
    assert [d.id for d in page.discrepancies] == ["t1-d-0"]
    assert page.url == "Manual Input Text"
    assert out.summary.criticalIssues == 1


def test_clean_page_is_compliant():
    out = run(make_orchestrator(), [DocumentDescriptor(url="https://example.com/ok")])

    page = out.results[0]
    assert page.status == PageStatus.COMPLIANT
    assert page.discrepancies == []
    assert page.url == "https://example.com/ok"


def test_invalid_url_target_errors_without_blocking_the_next():
    comparator = FakeComparator()
    scraper = FakeScraper()
    out = run(
        make_orchestrator(comparator, scraper),
        [DocumentDescriptor(url="not-a-url"), DocumentDescriptor(url="https://example.com/ok")],
    )

    assert [r.status for r in out.results] == [PageStatus.ERROR, PageStatus.COMPLIANT]
    assert out.results[0].url == "not-a-url"
    assert out.results[0].complianceScore == 0
    assert out.results[0].rawText.startswith("InvalidUrl")
    assert scraper.calls == ["https://example.com/ok"]
    assert comparator.calls == ["scraped"]


def test_rate_limited_provider_becomes_error_result():
    comparator = FakeComparator(errors={"page two": ProviderError(ErrorKind.RATE_LIMITED, "slow down")})
    out = run(
        make_orchestrator(comparator),
        [DocumentDescriptor(content="page one"), DocumentDescriptor(content="page two")],
    )

    assert [r.status for r in out.results] == [PageStatus.COMPLIANT, PageStatus.ERROR]
    assert out.results[1].rawText.startswith("RateLimited")


def test_unknown_severity_becomes_error_result():
    class UrgentComparator(FakeComparator):
        async def compare(self, *args, **kwargs):
            return ComparisonResult(complianceScore=50, discrepancies=[price_discrepancy("URGENT")])

    out = run(make_orchestrator(UrgentComparator()), [DocumentDescriptor(content="x")])
    assert out.results[0].status == PageStatus.ERROR
    assert out.results[0].rawText.startswith("InvalidSeverity")


def test_empty_targets_are_skipped():
    comparator = FakeComparator()
    out = run(
        make_orchestrator(comparator),
        [
            DocumentDescriptor(),
            DocumentDescriptor(content="  "),
            DocumentDescriptor(content="real page"),
        ],
    )

    assert len(out.results) == 1
    assert comparator.calls == ["real page"]


def test_url_without_scrape_credential_is_skipped():
    out = run(
        make_orchestrator(),
        [DocumentDescriptor(url="https://example.com"), DocumentDescriptor(content="inline")],
        scrape_credential=None,
    )
    assert len(out.results) == 1


def test_results_keep_input_order():
    comparator = FakeComparator(delays={"a": 0.05, "b": 0.01, "c": 0})
    out = run(
        make_orchestrator(comparator),
        [DocumentDescriptor(id=i, content=i) for i in ("a", "b", "c")],
    )
    assert [r.id for r in out.results] == ["a", "b", "c"]


def test_concurrency_is_bounded():
    in_flight = {"now": 0, "max": 0}

    class CountingComparator(FakeComparator):
        async def compare(self, *args, **kwargs):
            in_flight["now"] += 1
            in_flight["max"] = max(in_flight["max"], in_flight["now"])
            await asyncio.sleep(0.01)
            in_flight["now"] -= 1
            return ComparisonResult(complianceScore=100)

    run(
        make_orchestrator(CountingComparator(), concurrency=2),
        [DocumentDescriptor(content=str(i)) for i in range(6)],
    )
    assert in_flight["max"] == 2


# -----------------------------
# Pre-flight
# -----------------------------
def test_missing_api_key_aborts_before_any_work():
    comparator = FakeComparator()
    with pytest.raises(AuditError) as ei:
        run(
            make_orchestrator(comparator),
            [DocumentDescriptor(content="x")],
            config=ProviderConfig(provider="GEMINI", apiKey=""),
        )
    assert ei.value.kind == ErrorKind.MISSING_CREDENTIAL
    assert comparator.calls == []


@pytest.mark.parametrize(
    "reference",
    [DocumentDescriptor(), DocumentDescriptor(url="not-a-url"), DocumentDescriptor(content="   ")],
)
def test_unresolvable_reference_is_missing_reference(reference: DocumentDescriptor):
    with pytest.raises(AuditError) as ei:
        run(make_orchestrator(), [DocumentDescriptor(content="x")], reference=reference)
    assert ei.value.kind == ErrorKind.MISSING_REFERENCE


# -----------------------------
# Cancellation and persistence
# -----------------------------
def test_cancel_stops_remaining_targets_and_skips_persistence():
    cancel = asyncio.Event()
    comparator = FakeComparator()
    comparator.on_call = lambda content: cancel.set()
    persistence = FakePersistence()

    out = run(
        make_orchestrator(comparator, persistence=persistence, concurrency=1),
        [DocumentDescriptor(content="first"), DocumentDescriptor(content="second")],
        owner=SessionOwner("u1", "Ana"),
        cancel=cancel,
    )

    assert comparator.calls == ["first"]
    assert len(out.results) == 1
    assert out.cancelled is True
    assert out.saved is False
    assert persistence.saved == []


def test_session_is_saved_for_owner():
    persistence = FakePersistence()
    out = run(
        make_orchestrator(persistence=persistence),
        [DocumentDescriptor(content="Price: $450,000")],
        owner=SessionOwner("u1", "Ana"),
        project_name="  ",
        reference=DocumentDescriptor(url="https://official.test/listing"),
    )

    assert out.saved is True
    assert out.sessionId == "session-1"
    saved = persistence.saved[0]
    assert saved.userId == "u1"
    assert saved.projectName == "Untitled Project"
    assert saved.referenceUrl == "https://official.test/listing"


def test_persistence_failure_does_not_fail_the_run():
    out = run(
        make_orchestrator(persistence=FakePersistence(fail=True)),
        [DocumentDescriptor(content="Price: $450,000")],
        owner=SessionOwner("u1"),
    )
    assert out.saved is False
    assert out.results[0].status == PageStatus.NON_COMPLIANT


def test_nothing_is_saved_without_owner_or_results():
    persistence = FakePersistence()
    run(make_orchestrator(persistence=persistence), [DocumentDescriptor(content="x")])
    run(make_orchestrator(persistence=persistence), [DocumentDescriptor()], owner=SessionOwner("u1"))
    assert persistence.saved == []


def test_unexpected_resolver_exception_is_isolated_to_its_target():
    class FlakyResolver:
        async def resolve(self, descriptor, scrape_credential):
            if descriptor.url == "https://flaky.example.com":
                raise RuntimeError("connection reset")
            return await ContentResolver(FakeScraper()).resolve(descriptor, scrape_credential)

    comparator = FakeComparator()
    orch = AnalysisOrchestrator(FlakyResolver(), comparator)
    out = run(
        orch,
        [DocumentDescriptor(url="https://flaky.example.com"), DocumentDescriptor(content="clean page")],
    )

    assert [r.status for r in out.results] == [PageStatus.ERROR, PageStatus.COMPLIANT]
    assert out.results[0].rawText.startswith("ScrapeFailed")
    assert comparator.calls == ["clean page"]
