import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (directory containing openapi_tools/), so env is found regardless of cwd.
_project_root = Path(__file__).resolve().parent.parent
_env_file = _project_root / ".env"
load_dotenv(_env_file)
if not _env_file.exists():
    # Fallback: try cwd (e.g. when run as "python -m openapi_tools.server" from another checkout)
    load_dotenv()

DEFAULT_FALLBACK_URL = "http://localhost:8080"
DEFAULT_MAX_TOOL_NAME_LENGTH = 64
MIN_TOOL_NAME_LENGTH = 16


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Config:
    """Application configuration"""

    # OpenAPI spec discovery
    openapi_specs_directory: str = os.getenv("OPENAPI_SPECS_DIRECTORY", "openapi-specs")
    default_fallback_url: str = os.getenv("DEFAULT_FALLBACK_URL", DEFAULT_FALLBACK_URL)

    # Security headers injected into every outbound call (never taken from tool arguments)
    api_authorization_token: str = os.getenv("API_SECURITY_AUTHORIZATION_TOKEN", "")
    api_traffic_code: str = os.getenv("API_SECURITY_TRAFFIC_CODE", "")

    # Tool generation
    max_tool_name_length: int = int(os.getenv("MAX_TOOL_NAME_LENGTH", str(DEFAULT_MAX_TOOL_NAME_LENGTH)))
    lazy_tool_loading: bool = _env_bool("LAZY_TOOL_LOADING")

    # HTTP transport: response timeout, pool acquire timeout and pool size
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "10"))
    pool_acquire_timeout: float = float(os.getenv("POOL_ACQUIRE_TIMEOUT", "30"))
    max_connections: int = int(os.getenv("MAX_CONNECTIONS", "100"))

    # Server Configuration
    debug: bool = _env_bool("DEBUG")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    # Railway/Render use PORT, fallback to HTTP_PORT (default 8000)
    http_port: int = int(os.getenv("PORT", os.getenv("HTTP_PORT", "8000")))

    def validate(self) -> list[str]:
        """
        Validate configuration

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.openapi_specs_directory:
            errors.append("OPENAPI_SPECS_DIRECTORY is not configured")

        if self.max_tool_name_length < MIN_TOOL_NAME_LENGTH:
            errors.append(f"MAX_TOOL_NAME_LENGTH must be at least {MIN_TOOL_NAME_LENGTH}")

        if self.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be positive")

        if self.pool_acquire_timeout <= 0:
            errors.append("POOL_ACQUIRE_TIMEOUT must be positive")

        if self.max_connections <= 0:
            errors.append("MAX_CONNECTIONS must be positive")

        return errors


# Global config instance
config = Config()
