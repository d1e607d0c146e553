import datetime
import sys
from typing import Optional, Sequence, TextIO

from tqdm import tqdm

from .config import VITALS, Settings
from .schemas import AnalysisFailure, AnalysisResult, Session
from .services.report import (
    TIER_MARKERS,
    collect_threshold_alerts,
    format_score,
    format_vital,
    score_tier,
    vital_tier,
)


def _marked(text: str, tier) -> str:
    return text if tier is None else f"{text} {TIER_MARKERS[tier]}"


def show_results(results: Sequence[AnalysisResult], strategy: str, settings: Settings, out: Optional[TextIO] = None):
    out = out or sys.stdout
    print(f"\n📊 Results Summary ({strategy.upper()}):", file=out)
    for index, result in enumerate(results, start=1):
        print(f"\n{index}. {result.url}", file=out)
        for category, score in result.scores.items():
            text = _marked(format_score(score), score_tier(score, settings.THRESHOLD))
            print(f"   • {category:<16} {text}", file=out)

        print("\n   Core Web Vitals:", file=out)
        for key, _, label, _ in VITALS:
            value = getattr(result.vitals, key)
            text = _marked(format_vital(key, value), vital_tier(value, settings.VITALS_THRESHOLDS[key]))
            print(f"   • {label:<16}{text}", file=out)


def show_threshold_alerts(results: Sequence[AnalysisResult], settings: Settings, out: Optional[TextIO] = None):
    out = out or sys.stdout
    alerts = collect_threshold_alerts(results, settings.THRESHOLD)
    if not alerts:
        return
    print(f"\n⚠️  Threshold Alerts (< {settings.THRESHOLD}%):", file=out)
    for alert in alerts:
        print(f"   • {alert}", file=out)


def show_failure(failure: AnalysisFailure, out: Optional[TextIO] = None):
    out = out or sys.stdout
    print(f"\n✘ Failed to analyze {failure.url}: {failure.error}", file=out)


def format_timestamp(value: str) -> str:
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def show_sessions(sessions: Sequence[Session], out: Optional[TextIO] = None):
    out = out or sys.stdout
    if not sessions:
        print("No saved sessions found.", file=out)
        return
    print("\n📋 Saved Sessions:\n", file=out)
    for index, session in enumerate(sessions, start=1):
        print(f"{index}. {session.base_url}", file=out)
        print(f"   Strategy: {session.strategy}", file=out)
        print(f"   Slugs: {len(session.slugs)} URL(s)", file=out)
        print(f"   Created: {format_timestamp(session.timestamp)}", file=out)
        print("", file=out)


class ProgressTracker:
    """tqdm bar counting attempted URLs, drawn on stderr."""

    BAR_FORMAT = "{l_bar}{bar}| {n_fmt}/{total_fmt} URLs [{elapsed}<{remaining}]"

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out
        self._bar = None

    def start(self, total: int):
        self._bar = tqdm(
            total=total,
            desc="Progress",
            unit="URL",
            file=self.out or sys.stderr,
            bar_format=self.BAR_FORMAT,
        )

    def increment(self):
        self._bar.update(1)

    def stop(self):
        self._bar.close()
