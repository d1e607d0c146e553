import logging
from typing import Awaitable, Callable, Optional, Protocol, Sequence

from ..schemas import AnalysisData, AnalysisFailure, AnalysisResult, BatchOutcome, Strategy, utc_timestamp
from ..validator import build_full_url

logger = logging.getLogger(__name__)

Analyzer = Callable[[str, Strategy], Awaitable[AnalysisData]]


class Progress(Protocol):
    def start(self, total: int) -> None: ...
    def increment(self) -> None: ...
    def stop(self) -> None: ...


async def analyze_urls(
    base_url: str,
    slugs: Sequence[str],
    strategy: Strategy,
    analyzer: Analyzer,
    progress: Optional[Progress] = None,
    on_failure: Optional[Callable[[AnalysisFailure], None]] = None,
) -> BatchOutcome:
    """
    Analyze base_url + each slug, one request at a time and in slug order.

    A failing URL is recorded and skipped; it never aborts the batch and is
    not retried. Results therefore cannot be matched to slugs by index.
    """
    outcome = BatchOutcome()
    if progress:
        progress.start(len(slugs))

    try:
        for slug in slugs:
            full_url = build_full_url(base_url, slug)
            try:
                data = await analyzer(full_url, strategy)
            except Exception as e:
                failure = AnalysisFailure(url=full_url, error=str(e) or e.__class__.__name__)
                outcome.failures.append(failure)
                logger.warning("Failed to analyze %s: %s", full_url, failure.error)
                if on_failure:
                    on_failure(failure)
            else:
                outcome.results.append(AnalysisResult(
                    url=full_url,
                    strategy=strategy,
                    scores=data.scores,
                    vitals=data.vitals,
                    timestamp=utc_timestamp(),
                ))
                logger.info("Analyzed %s", full_url)
            if progress:
                progress.increment()
    finally:
        if progress:
            progress.stop()

    return outcome
