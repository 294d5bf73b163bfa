from enum import Enum
from pydantic import BaseModel, Field


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    MAJOR = "MAJOR"
    MINOR = "MINOR"


class PageStatus(str, Enum):
    COMPLIANT = "COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"
    ERROR = "ERROR"


class RawDiscrepancy(BaseModel):
    # severity stays a plain string here; the mapper owns its validation
    field: str
    referenceValue: str
    foundValue: str
    severity: str
    description: str
    suggestion: str


class ComparisonResult(BaseModel):
    """Canonical adapter output, identical for every provider."""

    complianceScore: int = Field(ge=0, le=100)
    discrepancies: list[RawDiscrepancy] = Field(default_factory=list)


class Discrepancy(BaseModel):
    id: str
    field: str
    referenceValue: str
    foundValue: str
    severity: Severity
    description: str
    suggestion: str


class PageAnalysis(BaseModel):
    id: str
    url: str
    timestamp: str
    status: PageStatus
    complianceScore: int = Field(ge=0, le=100)
    discrepancies: list[Discrepancy] = Field(default_factory=list)
    rawText: str = ""
    screenshot: str | None = None


class NewSession(BaseModel):
    userId: str
    projectName: str
    referenceUrl: str = ""
    results: list[PageAnalysis]


class AnalysisSession(NewSession):
    id: str
    timestamp: str


class RunSummary(BaseModel):
    compliant: int
    total: int
    averageScore: int
    criticalIssues: int

    @classmethod
    def of(cls, results: list[PageAnalysis]) -> "RunSummary":
        total = len(results)
        avg = round(sum(r.complianceScore for r in results) / total) if total else 0
        return cls(
            compliant=sum(1 for r in results if r.status == PageStatus.COMPLIANT),
            total=total,
            averageScore=avg,
            criticalIssues=sum(
                1
                for r in results
                for d in r.discrepancies
                if d.severity == Severity.CRITICAL
            ),
        )


class AnalysisRun(BaseModel):
    results: list[PageAnalysis]
    sessionId: str | None = None
    saved: bool = False
    cancelled: bool = False

    @property
    def summary(self) -> RunSummary:
        return RunSummary.of(self.results)
