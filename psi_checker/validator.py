import json
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import urlparse, urlunparse

from .errors import ConfigError, EmptySlugListError, InvalidUrlError, SlugFileNotFoundError

logger = logging.getLogger(__name__)

SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_PORTS = {"http": 80, "https": 443}
STRATEGIES = ("mobile", "desktop")
EXPORT_FORMATS = ("data", "markdown")

SLUG_TEMPLATE = """# PageSpeed URL Slugs Template
# Add one URL path per line
# Lines starting with # are comments and will be ignored

/
/about
/contact
/products
/services
/blog
/blog/latest-post
"""

CONFIG_TEMPLATE = {
    "baseUrl": "https://example.com",
    "strategy": "mobile",
    "slugs": "./slugs.txt",
    "export": ["data", "markdown"],
    "output": "./reports",
}


def has_scheme(url: str) -> bool:
    return bool(SCHEME_RE.match(url))


def normalize_url(raw: str, default_scheme: str = "https") -> str:
    """
    Canonical form of a user-supplied URL: scheme added when missing, scheme
    and host lower-cased, default port dropped, trailing slashes stripped.
    """
    value = raw.strip()
    if not value:
        raise InvalidUrlError("URL is required")
    if not has_scheme(value):
        value = f"{default_scheme}://{value}"

    parsed = urlparse(value)
    host = parsed.hostname
    if not host or re.search(r"\s", value):
        raise InvalidUrlError(f"Invalid URL format: {raw.strip()}")
    try:
        port = parsed.port
    except ValueError:
        raise InvalidUrlError(f"Invalid URL format: {raw.strip()}")

    scheme = parsed.scheme.lower()
    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if "@" in parsed.netloc:
        netloc = parsed.netloc.rsplit("@", 1)[0] + "@" + netloc

    canonical = urlunparse((scheme, netloc, parsed.path or "/", parsed.params, parsed.query, parsed.fragment))
    return canonical.rstrip("/")


def validate_url(raw: str) -> Optional[str]:
    """Return None for a usable URL, else the message to show the user."""
    if not raw or not raw.strip():
        return "URL is required"
    try:
        normalize_url(raw)
    except InvalidUrlError as e:
        return str(e)
    return None


def build_full_url(base_url: str, slug: str) -> str:
    base = base_url.rstrip("/")
    if slug == "/":
        return base
    path = slug if slug.startswith("/") else f"/{slug}"
    return f"{base}{path}"


def resolve_slugs(input_path: Optional[str]) -> List[str]:
    if not input_path:
        return ["/"]

    full_path = Path(input_path).resolve()
    if not full_path.exists():
        raise SlugFileNotFoundError(f"Slug file not found: {input_path}")

    raw = full_path.read_text(encoding="utf-8")
    slugs = [line.strip() for line in raw.splitlines()]
    slugs = [s for s in slugs if s and not s.startswith("#")]

    if not slugs:
        raise EmptySlugListError("Slug list is empty.")
    return slugs


def parse_slug_file(file_path: str) -> List[str]:
    """Slugs from a .json array or a plain text file with one slug per line."""
    content = Path(file_path).read_text(encoding="utf-8")
    if file_path.endswith(".json"):
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in slug file {file_path}: {e}")
        return [str(s) for s in data] if isinstance(data, list) else []
    return [line.strip() for line in content.splitlines() if line.strip()]


def validate_export_formats(formats: Iterable[str]) -> List[str]:
    valid = []
    for fmt in formats:
        if fmt in EXPORT_FORMATS:
            valid.append(fmt)
        else:
            logger.warning("Unknown export format '%s'. Valid formats: %s", fmt, ", ".join(EXPORT_FORMATS))
    return valid


def create_slug_template(output_path: str = "./slugs-template.txt") -> Path:
    p = Path(output_path)
    try:
        p.write_text(SLUG_TEMPLATE, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to create slug template: {e}")
    return p


def create_config_template(output_path: str = "./.pagespeedrc.json") -> Path:
    p = Path(output_path)
    try:
        p.write_text(json.dumps(CONFIG_TEMPLATE, indent=2), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to create config template: {e}")
    return p
