class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    VALIDATE_API_KEY = V1 + "/validate-api-key"
    RESOLVE_CONTENT = V1 + "/resolve-content"
    ANALYZE = V1 + "/analyze"
    HISTORY = V1 + "/history"
    HISTORY_ITEM = HISTORY + "/{session_id}"
    LOGS = V1 + "/logs"
    LOG_FEEDBACK = LOGS + "/feedback"
    AUTH_REGISTER = V1 + "/auth/register"
    AUTH_LOGIN = V1 + "/auth/login"
    AUTH_LOGOUT = V1 + "/auth/logout"
    AUTH_ME = V1 + "/auth/me"
    DATABASE_SETTINGS = V1 + "/settings/database"


class LogAction:
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    REGISTER = "REGISTER"
    ANALYSIS_RUN = "ANALYSIS_RUN"
    SCRAPE_URL = "SCRAPE_URL"
    VIEW_HISTORY = "VIEW_HISTORY"
    FEEDBACK_CONFIRMED = "FEEDBACK_CONFIRMED"
    FEEDBACK_REJECTED = "FEEDBACK_REJECTED"


MANUAL_TARGET_LABEL = "Manual Input"
MANUAL_REFERENCE_LABEL = "Manual Input Reference"
MANUAL_RESULT_URL = "Manual Input Text"
DEFAULT_PROJECT_NAME = "Untitled Project"
