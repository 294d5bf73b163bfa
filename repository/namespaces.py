from typing import Final

ROOT: Final[str] = "auditor"

USERS: Final[str] = f"{ROOT}:users"
LOGS: Final[str] = f"{ROOT}:logs"
HISTORY: Final[str] = f"{ROOT}:history"

# Remote table names
USERS_TABLE: Final[str] = "users"
LOGS_TABLE: Final[str] = "logs"
HISTORY_TABLE: Final[str] = "analysis_history"
