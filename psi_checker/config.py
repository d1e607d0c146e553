import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

logger = logging.getLogger(__name__)

# (api id, attribute name, display title)
CATEGORIES = [
    ("performance", "performance", "Performance"),
    ("accessibility", "accessibility", "Accessibility"),
    ("best-practices", "best_practices", "Best Practices"),
    ("seo", "seo", "SEO"),
    ("pwa", "pwa", "PWA"),
]

# (attribute name, lighthouse audit id, short label, long name)
VITALS = [
    ("cls", "cumulative-layout-shift", "CLS", "Cumulative Layout Shift"),
    ("lcp", "largest-contentful-paint", "LCP", "Largest Contentful Paint"),
    ("tbt", "total-blocking-time", "TBT", "Total Blocking Time"),
    ("fid", "max-potential-fid", "FID", "First Input Delay"),
    ("fcp", "first-contentful-paint", "FCP", "First Contentful Paint"),
    ("si", "speed-index", "SI", "Speed Index"),
]

DEFAULT_VITALS_THRESHOLDS = {
    "cls": (0.1, 0.25),
    "lcp": (2500, 4000),
    "tbt": (200, 600),
    "fid": (100, 300),
    "fcp": (1800, 3000),
    "si": (3400, 5800),
}

RC_FILE_CANDIDATES = (".pagespeedrc.json", ".pagespeedrc", "pagespeed.config.json")


class Settings(BaseSettings):
    """Process-wide configuration, built once and passed to each component."""
    PAGESPEED_API_KEY: Optional[str] = None
    THRESHOLD: int = 90
    SESSIONS_FILE: str = ".pagespeed-sessions.json"
    MAX_SESSIONS: int = 10
    RESULTS_DIR: str = "results"
    REQUEST_TIMEOUT: Optional[float] = None
    LOG_LEVEL: str = "WARNING"
    VITALS_THRESHOLDS: Dict[str, Tuple[float, float]] = Field(
        default_factory=lambda: dict(DEFAULT_VITALS_THRESHOLDS)
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def find_rc_file(config_path: Optional[str] = None, cwd: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the project config file. An explicit path must exist; otherwise the
    usual names are tried in the working directory.
    """
    if config_path:
        p = Path(config_path)
        if not p.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        return p
    base = cwd or Path.cwd()
    for name in RC_FILE_CANDIDATES:
        p = base / name
        if p.exists():
            return p
    return None


def load_rc_file(path: Path):
    """
    Parse a project config file. Unreadable or malformed files are skipped
    with a warning, mirroring how a missing file is treated.
    """
    from .schemas import RcConfig

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return RcConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Failed to parse config file %s: %s", path, e)
        return None
