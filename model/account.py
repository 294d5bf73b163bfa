from pydantic import BaseModel


class User(BaseModel):
    id: str
    email: str
    name: str
    createdAt: str


class LogEntry(BaseModel):
    id: str
    userId: str
    userName: str
    action: str
    details: str
    timestamp: str


class DatabaseConfig(BaseModel):
    """
    Runtime remote-database configuration. Mutable on purpose: the
    operator may replace it mid-session through the settings endpoint.
    """

    url: str = ""
    key: str = ""

    def is_present(self) -> bool:
        return bool(self.url.strip() and self.key.strip())
