# model/api.py
from pydantic import BaseModel, Field
from model.account import LogEntry, User
from model.analysis import AnalysisSession, PageAnalysis, RunSummary
from model.document import DocumentDescriptor
from model.provider import ProviderConfig
from util.constants import DEFAULT_PROJECT_NAME


class ValidateKeyRequest(BaseModel):
    provider: str = "GEMINI"
    apiKey: str = Field(min_length=1)


class ValidateKeyResponse(BaseModel):
    ok: bool


class ResolveContentRequest(BaseModel):
    descriptor: DocumentDescriptor
    # falls back to the server's FIRECRAWL_API_KEY when empty
    scrapeKey: str | None = None


class ResolveContentResponse(BaseModel):
    content: str
    screenshot: str | None = None
    scraped: bool


class AnalyzeRequest(BaseModel):
    reference: DocumentDescriptor
    targets: list[DocumentDescriptor]
    llm: ProviderConfig
    scrapeKey: str | None = None
    projectName: str = DEFAULT_PROJECT_NAME
    userId: str | None = None


class AnalyzeResponse(BaseModel):
    results: list[PageAnalysis]
    sessionId: str | None = None
    saved: bool
    cancelled: bool = False
    summary: RunSummary


class HistoryResponse(BaseModel):
    sessions: list[AnalysisSession]


class LogsResponse(BaseModel):
    logs: list[LogEntry]


class FeedbackRequest(BaseModel):
    discrepancyId: str = Field(min_length=1)
    isAccurate: bool
    details: str = ""


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3)
    name: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(min_length=3)


class UserResponse(BaseModel):
    user: User | None = None


class DatabaseSettingsRequest(BaseModel):
    url: str = ""
    key: str = ""


class DatabaseSettingsResponse(BaseModel):
    url: str
    configured: bool
    mode: str


class OkResponse(BaseModel):
    ok: bool = True
