from pathlib import Path

from pydantic_settings import BaseSettings


def _load_version() -> str:
    version_path = Path(__file__).resolve().parent / "VERSION"
    try:
        return version_path.read_text().strip()
    except FileNotFoundError:
        return "0.1.0"


class Settings(BaseSettings):
    """Application configuration using Pydantic settings."""

    # Database
    DATABASE_URL: str = "sqlite:///./data/fleet.db"

    # Application
    APP_NAME: str = "Fleet Status"
    APP_VERSION: str = _load_version()
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Node defaults ──────────────────────────────────────────────────
    # Platform applied to unallocated nodes when an edit doesn't name one
    DEFAULT_PLATFORM: str = "suse-12.3"

    # Group bucket for nodes with neither a manual nor an automatic group
    UNKNOWN_GROUP_LABEL: str = "Unknown"

    # Group value that clears manual grouping (compared case-insensitively)
    AUTOMATIC_GROUP_KEYWORD: str = "automatic"

    # Network whose address lives in the BMC section of the attribute tree
    BMC_NETWORK_NAME: str = "bmc"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
