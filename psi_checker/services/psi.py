import logging
import math
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..config import CATEGORIES, VITALS
from ..errors import AnalysisError
from ..schemas import AnalysisData, CategoryScores, CoreWebVitals, Strategy

logger = logging.getLogger(__name__)

PAGESPEED_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_lighthouse(data: Dict[str, Any]) -> AnalysisData:
    """
    Pull the five category scores and six vitals out of a runPagespeed
    response. Absent categories or audits come back as None.
    """
    if not isinstance(data, dict):
        raise AnalysisError("Invalid response from PageSpeed API: expected a JSON object.")
    if "error" in data:
        err = data["error"]
        message = err.get("message", "Unknown API error") if isinstance(err, dict) else str(err)
        raise AnalysisError(f"PageSpeed API Error: {message}")

    lighthouse = data.get("lighthouseResult")
    if not isinstance(lighthouse, dict):
        raise AnalysisError("Invalid response from PageSpeed API: 'lighthouseResult' not found.")

    categories = lighthouse.get("categories") or {}
    audits = lighthouse.get("audits") or {}

    try:
        scores = {}
        for api_id, attr, _ in CATEGORIES:
            score = (categories.get(api_id) or {}).get("score")
            scores[attr] = None if score is None else round_half_up(score * 100)

        vitals = {}
        for attr, audit_id, _, _ in VITALS:
            vitals[attr] = (audits.get(audit_id) or {}).get("numericValue")

        return AnalysisData(scores=CategoryScores(**scores), vitals=CoreWebVitals(**vitals))
    except (AttributeError, TypeError, ValidationError) as e:
        raise AnalysisError(f"Malformed lighthouseResult in PageSpeed API response: {e}")


class PageSpeedClient:
    """One GET per (url, strategy) against the PageSpeed Insights v5 API."""

    def __init__(self, api_key: Optional[str], timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    def build_params(self, url: str, strategy: Strategy):
        params = [("url", url), ("strategy", strategy)]
        if self.api_key:
            params.append(("key", self.api_key))
        params.extend(("category", api_id) for api_id, _, _ in CATEGORIES)
        return params

    async def analyze_url(self, url: str, strategy: Strategy) -> AnalysisData:
        logger.debug("Requesting PageSpeed data for %s (%s)", url, strategy)
        try:
            r = await self._client.get(PAGESPEED_URL, params=self.build_params(url, strategy))
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPStatusError as e:
            raise AnalysisError(f"Error calling PageSpeed API: HTTP {e.response.status_code} {_api_message(e.response)}".rstrip())
        except httpx.RequestError as e:
            raise AnalysisError(f"Network error while calling PageSpeed API: {e}")
        except ValueError as e:
            raise AnalysisError(f"Invalid response from PageSpeed API: {e}")
        return parse_lighthouse(data)

    __call__ = analyze_url


def _api_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return ""
