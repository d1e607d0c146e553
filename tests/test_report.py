import csv
import datetime
import json
from pathlib import Path

import pytest

from psi_checker.services.report import (
    CSV_HEADER,
    ExportService,
    Tier,
    average_scores,
    collect_threshold_alerts,
    format_score,
    format_vital,
    render_markdown,
    score_tier,
    vital_tier,
)

from .factories import make_result

FULL_VITALS = {"cls": 0.123456, "lcp": 2600.6, "tbt": 100, "fid": 350, "fcp": 1800, "si": 5000.4}


@pytest.mark.parametrize("score,tier", [
    (100, Tier.PASS),
    (90, Tier.PASS),
    (89, Tier.NEEDS_IMPROVEMENT),
    (50, Tier.NEEDS_IMPROVEMENT),
    (49, Tier.FAIL),
    (0, Tier.FAIL),
    (None, None),
])
def test_score_tier(score, tier):
    assert score_tier(score) == tier


def test_score_tier_custom_threshold():
    assert score_tier(80, threshold=80) == Tier.PASS
    assert score_tier(79, threshold=80) == Tier.NEEDS_IMPROVEMENT


@pytest.mark.parametrize("value,tier", [
    (0.1, Tier.GOOD),
    (0.1001, Tier.NEEDS_IMPROVEMENT),
    (0.25, Tier.NEEDS_IMPROVEMENT),
    (0.2501, Tier.POOR),
    (None, None),
])
def test_vital_tier_cls(value, tier):
    assert vital_tier(value, (0.1, 0.25)) == tier


def test_format_values():
    assert format_score(87) == "87%"
    assert format_score(None) == "N/A"
    assert format_vital("cls", 0.0456) == "0.046"
    assert format_vital("lcp", 2500.5) == "2501ms"
    assert format_vital("tbt", None) == "N/A"


def test_average_scores_ignores_missing_values():
    results = [
        make_result(scores={"performance": 90, "accessibility": 81, "pwa": None}),
        make_result(scores={"performance": 71, "accessibility": None}),
    ]
    averages = average_scores(results)
    assert averages["Performance"] == 81
    assert averages["Accessibility"] == 81
    assert averages["PWA"] == 0
    assert list(averages) == ["Performance", "Accessibility", "Best Practices", "SEO", "PWA"]


def test_average_scores_of_nothing():
    assert set(average_scores([]).values()) == {0}


def test_threshold_alerts():
    results = [
        make_result(url="https://a.test", scores={"performance": 95, "seo": 89, "pwa": None}),
        make_result(url="https://b.test", scores={"accessibility": 40}),
    ]
    alerts = collect_threshold_alerts(results, 90)
    assert [(a.url, a.category, a.score) for a in alerts] == [
        ("https://a.test", "SEO", 89),
        ("https://b.test", "Accessibility", 40),
    ]


def test_missing_data_produces_no_alerts_or_tiers(settings):
    result = make_result(scores={}, vitals={})
    assert collect_threshold_alerts([result], 90) == []

    md = render_markdown([result], settings)
    for name in ("Cumulative Layout Shift", "Largest Contentful Paint", "Total Blocking Time",
                 "First Input Delay", "First Contentful Paint", "Speed Index"):
        assert f"| {name} | N/A | - |" in md
    assert "| Performance | N/A |" in md


def test_render_markdown(settings):
    results = [
        make_result(url="https://example.com", scores={"performance": 95, "accessibility": 80}, vitals=FULL_VITALS),
        make_result(url="https://example.com/about", scores={"performance": 40, "accessibility": None}),
    ]
    md = render_markdown(results, settings, generated_at=datetime.datetime(2024, 5, 1, 12, 30, 0))

    assert md.startswith("# PageSpeed Insights Report\n")
    assert "**Generated:** 2024-05-01 12:30:00" in md
    assert "**Strategy:** mobile" in md
    assert "**Total URLs:** 2" in md
    assert "| Performance | 68% | ⚠️ Needs Improvement |" in md
    assert "| Accessibility | 80% | ⚠️ Needs Improvement |" in md
    assert "| SEO | 0% | ❌ Poor |" in md
    assert "### 1. https://example.com" in md
    assert "### 2. https://example.com/about" in md
    assert "| Performance | ✅ 95% |" in md
    assert "| Performance | ❌ 40% |" in md
    assert "| Cumulative Layout Shift | 0.123 | ⚠️ Needs Improvement |" in md
    assert "| Largest Contentful Paint | 2601ms | ⚠️ Needs Improvement |" in md
    assert "| Total Blocking Time | 100ms | ✅ Good |" in md
    assert "| First Input Delay | 350ms | ❌ Poor |" in md
    assert "| First Contentful Paint | 1800ms | ✅ Good |" in md


def test_render_markdown_single_result_mean(settings):
    md = render_markdown([make_result(scores={"performance": 95, "accessibility": 80})], settings)
    assert "| Performance | 95% | ✅ Good |" in md


def test_export_data_writes_json_and_csv(settings):
    results = [
        make_result(url="https://example.com", scores={"performance": 95, "seo": 100}, vitals=FULL_VITALS),
        make_result(url="https://example.com/about", strategy="mobile"),
    ]
    json_out, csv_out = ExportService(settings).export_data(results)

    assert json_out.parent == csv_out.parent
    assert json_out.parent.parent == settings_results_dir(settings)

    data = json.loads(json_out.read_text(encoding="utf-8"))
    assert len(data) == 2
    assert data[0]["url"] == "https://example.com"
    assert data[0]["scores"]["Performance"] == 95
    assert data[0]["scores"]["Best Practices"] is None
    assert data[0]["vitals"]["cls"] == 0.123456
    assert data[0]["vitals"]["tbt"] == 100
    assert isinstance(data[0]["vitals"]["tbt"], int)
    assert data[1]["vitals"]["lcp"] is None

    with csv_out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert len(rows) == 3
    assert rows[0] == CSV_HEADER
    assert rows[0] == ["URL", "Strategy", "Performance", "Accessibility", "Best Practices", "SEO", "PWA",
                       "CLS", "LCP", "TBT", "FID", "FCP", "SI", "Timestamp"]
    assert rows[1][:4] == ["https://example.com", "mobile", "95", "N/A"]
    assert rows[1][7] == "0.123456"
    assert rows[1][9] == "100"
    assert rows[2][2:13] == ["N/A"] * 11
    assert rows[2][13] == "2024-05-01T10:00:00.000Z"

    raw = csv_out.read_text(encoding="utf-8").splitlines()[1]
    assert raw.startswith('"https://example.com","mobile",95,')


def settings_results_dir(settings):
    return Path(settings.RESULTS_DIR)


def test_markdown_report_default_location(settings):
    path = ExportService(settings).generate_markdown_report([make_result(scores={"performance": 95})])
    assert path.name == "results.md"
    assert path.parent.parent == settings_results_dir(settings)
    assert "# PageSpeed Insights Report" in path.read_text(encoding="utf-8")


def test_markdown_report_custom_name_is_flat(settings, tmp_path):
    exporter = ExportService(settings, results_dir=str(tmp_path / "reports"))
    path = exporter.generate_markdown_report([make_result()], file_name="weekly")
    assert path == tmp_path / "reports" / "weekly.md"
    assert path.exists()
