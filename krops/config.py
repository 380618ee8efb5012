import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from krops.errors import ConfigurationError

load_dotenv()

TRUTHY = {"1", "true", "yes", "on"}


def _flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in TRUTHY


def _cache_size(raw: str) -> int:
    try:
        size = int(raw)
    except ValueError:
        raise ConfigurationError(f"KROPS_CACHE_SIZE must be a whole number, got {raw!r}.") from None
    if size < 1:
        raise ConfigurationError(f"KROPS_CACHE_SIZE must be at least 1, got {size}.")
    return size


@dataclass(frozen=True)
class Settings:
    google_api_key: Optional[str]
    analysis_model: str
    image_model: str
    cache_path: str
    cache_size: int
    pdf_font: Optional[str]
    demo_mode: bool
    log_level: str
    connectivity_host: str


def get_settings() -> Settings:
    """Read settings from the environment (and .env, if present)."""
    return Settings(
        google_api_key=os.getenv("GOOGLE_API_KEY") or None,
        analysis_model=os.getenv("KROPS_ANALYSIS_MODEL", "gemini-2.5-flash"),
        image_model=os.getenv("KROPS_IMAGE_MODEL", "gemini-2.5-flash-image"),
        cache_path=os.getenv("KROPS_CACHE_PATH", os.path.join(".krops", "reports.json")),
        cache_size=_cache_size(os.getenv("KROPS_CACHE_SIZE", "5")),
        pdf_font=os.getenv("KROPS_PDF_FONT") or None,
        demo_mode=_flag("KROPS_DEMO_MODE"),
        log_level=os.getenv("KROPS_LOG_LEVEL", "INFO").upper(),
        connectivity_host=os.getenv("KROPS_CONNECTIVITY_HOST", "generativelanguage.googleapis.com"),
    )
