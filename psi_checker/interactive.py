"""
Prompts for the `interactive` command, built on rich.prompt.

Every prompt reads from an optional `stream` (stdin when None) so the flow can
be driven from tests.
"""
import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence, TextIO, Tuple, TypeVar

from rich.prompt import Confirm, Prompt

from .display import format_timestamp
from .schemas import Session, Strategy
from .validator import has_scheme, normalize_url, parse_slug_file, validate_url

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisConfig(NamedTuple):
    base_url: str
    slugs: List[str]
    strategy: Strategy
    is_new_session: bool


def select(message: str, choices: Sequence[Tuple[str, T]], stream: Optional[TextIO] = None, default: int = 0) -> T:
    """Numbered single choice; rich re-asks until the answer is one of the numbers."""
    print(message)
    for i, (title, _) in enumerate(choices, start=1):
        print(f"  {i}) {title}")
    numbers = [str(i) for i in range(1, len(choices) + 1)]
    answer = Prompt.ask("Choice", choices=numbers, default=numbers[default], stream=stream)
    return choices[int(answer.strip()) - 1][1]


def confirm(message: str, stream: Optional[TextIO] = None, default: bool = False) -> bool:
    return Confirm.ask(message, default=default, stream=stream)


def get_analysis_config(sessions: Sequence[Session], stream: Optional[TextIO] = None) -> AnalysisConfig:
    choices = [("New analysis", "new")]
    if sessions:
        choices.append(("Reuse previous session", "reuse"))
    action = select("What would you like to do?", choices, stream)

    if action == "reuse":
        session = select(
            "Select a previous session:",
            [
                (f"{s.base_url} ({len(s.slugs)} URLs, {s.strategy}) - {format_timestamp(s.timestamp)}", s)
                for s in sessions
            ],
            stream,
        )
        print(f"\n✓ Loaded session: {session.base_url} ({len(session.slugs)} URLs)")
        return AnalysisConfig(session.base_url, list(session.slugs), session.strategy, False)

    base_url = get_base_url(stream)
    strategy = get_strategy(stream)
    slugs = get_slugs(stream)
    return AnalysisConfig(base_url, slugs, strategy, True)


def get_base_url(stream: Optional[TextIO] = None) -> str:
    while True:
        url = Prompt.ask("Enter URL or domain", default="", show_default=False, stream=stream).strip()
        problem = validate_url(url)
        if problem is None:
            break
        print(problem)

    if not has_scheme(url):
        scheme = select(
            "Choose a protocol:",
            [("https:// (recommended)", "https"), ("http://", "http")],
            stream,
        )
        url = f"{scheme}://{url}"
    return normalize_url(url)


def get_strategy(stream: Optional[TextIO] = None) -> Strategy:
    return select("Select testing strategy:", [("📱 Mobile", "mobile"), ("🖥️  Desktop", "desktop")], stream)


def get_slugs(stream: Optional[TextIO] = None) -> List[str]:
    if confirm("Load URLs from a file?", stream):
        while True:
            path = Prompt.ask("Path to URL file (.txt or .json)", default="", show_default=False, stream=stream).strip()
            if path and Path(path).is_file():
                break
            print("File does not exist.")
        slugs = parse_slug_file(path)
        if slugs:
            return slugs
        logger.warning("No slugs found in %s", path)
    return get_manual_slugs(stream)


def get_manual_slugs(stream: Optional[TextIO] = None) -> List[str]:
    print("\nEnter URL paths/slugs (empty input to finish):")
    slugs = []
    while True:
        slug = Prompt.ask("Path/Slug (e.g., /, /about, /contact)", default="", show_default=False, stream=stream)
        slug = slug.strip()
        if not slug:
            break
        slugs.append(slug)

    if not slugs:
        print("\nNo paths provided, testing homepage only.")
        slugs.append("/")
    return slugs


def get_export_preferences(stream: Optional[TextIO] = None) -> List[str]:
    """Comma or space separated picks from: 1) JSON & CSV, 2) Markdown report."""
    options = {"1": "data", "2": "markdown", "data": "data", "markdown": "markdown"}
    print("\nSelect export formats:")
    print("  1) 📄 JSON & CSV")
    print("  2) 📝 Markdown Report")
    answer = Prompt.ask("Formats, 0 for none", default="2", stream=stream).strip().lower()
    if not answer:
        return ["markdown"]

    formats: List[str] = []
    for token in answer.replace(",", " ").split():
        fmt: Optional[str] = options.get(token)
        if fmt and fmt not in formats:
            formats.append(fmt)

    if not formats:
        print("\n⚠️  No export format selected. Nothing will be saved.")
    return formats


def ask_to_open_report(stream: Optional[TextIO] = None) -> bool:
    return confirm("Open markdown report?", stream)
