from psi_checker.schemas import AnalysisData, AnalysisResult, CategoryScores, CoreWebVitals


def make_psi_payload(perf=0.95, a11y=0.8, best=0.92, seo=1.0, pwa=None, cls=0.05, lcp=1800.4, tbt=150, fid=90, fcp=1200, si=2500):
    """Build a runPagespeed response shaped like the real API."""
    categories = {}
    for key, score in (("performance", perf), ("accessibility", a11y), ("best-practices", best), ("seo", seo), ("pwa", pwa)):
        if score is not None:
            categories[key] = {"id": key, "score": score}
    audits = {}
    for key, value in (
        ("cumulative-layout-shift", cls),
        ("largest-contentful-paint", lcp),
        ("total-blocking-time", tbt),
        ("max-potential-fid", fid),
        ("first-contentful-paint", fcp),
        ("speed-index", si),
    ):
        if value is not None:
            audits[key] = {"id": key, "numericValue": value}
    return {"lighthouseResult": {"categories": categories, "audits": audits}}


def make_data(**scores):
    return AnalysisData(
        scores=CategoryScores(**scores),
        vitals=CoreWebVitals(cls=0.05, lcp=1800, tbt=150, fid=90, fcp=1200, si=2500),
    )


def make_result(url="https://example.com", strategy="mobile", scores=None, vitals=None):
    return AnalysisResult(
        url=url,
        strategy=strategy,
        scores=CategoryScores(**(scores or {})),
        vitals=CoreWebVitals(**(vitals or {})),
        timestamp="2024-05-01T10:00:00.000Z",
    )
