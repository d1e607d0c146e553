import csv
import datetime
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..config import CATEGORIES, VITALS, Settings
from ..schemas import AnalysisResult, ThresholdAlert
from .psi import round_half_up

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
NEEDS_IMPROVEMENT_FLOOR = 50

CSV_HEADER = [
    "URL",
    "Strategy",
    "Performance",
    "Accessibility",
    "Best Practices",
    "SEO",
    "PWA",
    "CLS",
    "LCP",
    "TBT",
    "FID",
    "FCP",
    "SI",
    "Timestamp",
]


class Tier(str, Enum):
    PASS = "pass"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs-improvement"
    FAIL = "fail"
    POOR = "poor"


TIER_MARKERS = {
    Tier.PASS: "✅",
    Tier.GOOD: "✅",
    Tier.NEEDS_IMPROVEMENT: "⚠️",
    Tier.FAIL: "❌",
    Tier.POOR: "❌",
}

TIER_LABELS = {
    Tier.PASS: "✅ Good",
    Tier.GOOD: "✅ Good",
    Tier.NEEDS_IMPROVEMENT: "⚠️ Needs Improvement",
    Tier.FAIL: "❌ Poor",
    Tier.POOR: "❌ Poor",
}


def score_tier(score: Optional[float], threshold: int = 90) -> Optional[Tier]:
    if score is None:
        return None
    if score >= threshold:
        return Tier.PASS
    if score >= NEEDS_IMPROVEMENT_FLOOR:
        return Tier.NEEDS_IMPROVEMENT
    return Tier.FAIL


def vital_tier(value: Optional[float], bounds: Tuple[float, float]) -> Optional[Tier]:
    if value is None:
        return None
    good, poor = bounds
    if value <= good:
        return Tier.GOOD
    if value <= poor:
        return Tier.NEEDS_IMPROVEMENT
    return Tier.POOR


def format_score(score: Optional[int]) -> str:
    return NOT_AVAILABLE if score is None else f"{score}%"


def format_vital(key: str, value: Optional[Union[int, float]]) -> str:
    if value is None:
        return NOT_AVAILABLE
    if key == "cls":
        return f"{value:.3f}"
    return f"{round_half_up(value)}ms"


def average_scores(results: Sequence[AnalysisResult]) -> Dict[str, int]:
    """
    Mean of the numeric scores per category, rounded. A category with no
    numeric score in any result averages to 0.
    """
    averages = {}
    for _, attr, title in CATEGORIES:
        values = [getattr(r.scores, attr) for r in results]
        values = [v for v in values if v is not None]
        averages[title] = round_half_up(sum(values) / len(values)) if values else 0
    return averages


def collect_threshold_alerts(results: Sequence[AnalysisResult], threshold: int = 90) -> List[ThresholdAlert]:
    alerts = []
    for result in results:
        for category, score in result.scores.items():
            if score is not None and score < threshold:
                alerts.append(ThresholdAlert(url=result.url, category=category, score=score))
    return alerts


def csv_row(result: AnalysisResult) -> list:
    row = [result.url, result.strategy]
    row.extend(NOT_AVAILABLE if s is None else s for _, s in result.scores.items())
    row.extend(NOT_AVAILABLE if v is None else v for _, v in result.vitals.items())
    row.append(result.timestamp)
    return row


def render_markdown(results: Sequence[AnalysisResult], settings: Settings, generated_at: Optional[datetime.datetime] = None) -> str:
    generated_at = generated_at or datetime.datetime.now()
    strategy = results[0].strategy if results else "mobile"
    threshold = settings.THRESHOLD

    lines = [
        "# PageSpeed Insights Report",
        "",
        f"**Generated:** {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Strategy:** {strategy}",
        f"**Total URLs:** {len(results)}",
        "",
        "## Summary",
        "",
        "| Metric | Average Score | Status |",
        "|--------|---------------|--------|",
    ]
    for metric, score in average_scores(results).items():
        lines.append(f"| {metric} | {score}% | {TIER_LABELS[score_tier(score, threshold)]} |")

    lines += ["", "## Detailed Results", ""]
    for index, result in enumerate(results, start=1):
        lines += [
            f"### {index}. {result.url}",
            "",
            "| Category | Score |",
            "|----------|-------|",
        ]
        for category, score in result.scores.items():
            tier = score_tier(score, threshold)
            cell = format_score(score) if tier is None else f"{TIER_MARKERS[tier]} {format_score(score)}"
            lines.append(f"| {category} | {cell} |")

        lines += [
            "",
            "**Core Web Vitals:**",
            "",
            "| Metric | Value | Status |",
            "|--------|-------|--------|",
        ]
        for key, _, _, name in VITALS:
            value = getattr(result.vitals, key)
            tier = vital_tier(value, settings.VITALS_THRESHOLDS[key])
            status = "-" if tier is None else TIER_LABELS[tier]
            lines.append(f"| {name} | {format_vital(key, value)} | {status} |")

        lines += ["", "---", ""]

    return "\n".join(lines) + "\n"


class ExportService:
    """Writes JSON, CSV and Markdown exports under the results directory."""

    def __init__(self, settings: Settings, results_dir: Optional[str] = None):
        self.settings = settings
        self.results_dir = Path(results_dir or settings.RESULTS_DIR)

    def create_result_folder(self, base: bool = False) -> Path:
        if base:
            folder = self.results_dir
        else:
            stamp = datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="milliseconds")
            folder = self.results_dir / stamp.replace("+00:00", "Z").replace(":", "-").replace(".", "-")
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    def export_data(self, results: Sequence[AnalysisResult]) -> Tuple[Path, Path]:
        folder = self.create_result_folder()
        json_out = folder / "results.json"
        csv_out = folder / "results.csv"

        payload = [r.model_dump(mode="json", by_alias=True) for r in results]
        with json_out.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

        with csv_out.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_NONNUMERIC)
            writer.writerow(CSV_HEADER)
            writer.writerows(csv_row(r) for r in results)

        logger.info("Exported %d result(s) to %s", len(results), folder)
        return json_out, csv_out

    def generate_markdown_report(self, results: Sequence[AnalysisResult], file_name: Optional[str] = None) -> Path:
        folder = self.create_result_folder(base=bool(file_name))
        out = folder / (f"{file_name}.md" if file_name else "results.md")
        out.write_text(render_markdown(results, self.settings), encoding="utf-8")
        logger.info("Wrote markdown report %s", out)
        return out
