import datetime
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .config import CATEGORIES, VITALS

Strategy = Literal["mobile", "desktop"]
ExportFormat = Literal["data", "markdown"]


def utc_timestamp() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CategoryScores(BaseModel):
    """Lighthouse category scores as integer percentages. None means not available."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    performance: Optional[int] = Field(None, ge=0, le=100, alias="Performance")
    accessibility: Optional[int] = Field(None, ge=0, le=100, alias="Accessibility")
    best_practices: Optional[int] = Field(None, ge=0, le=100, alias="Best Practices")
    seo: Optional[int] = Field(None, ge=0, le=100, alias="SEO")
    pwa: Optional[int] = Field(None, ge=0, le=100, alias="PWA")

    def items(self) -> List[Tuple[str, Optional[int]]]:
        return [(title, getattr(self, attr)) for _, attr, title in CATEGORIES]


class CoreWebVitals(BaseModel):
    model_config = ConfigDict(frozen=True)

    cls: Optional[Union[int, float]] = None
    lcp: Optional[Union[int, float]] = None
    tbt: Optional[Union[int, float]] = None
    fid: Optional[Union[int, float]] = None
    fcp: Optional[Union[int, float]] = None
    si: Optional[Union[int, float]] = None

    def items(self) -> List[Tuple[str, Optional[Union[int, float]]]]:
        return [(key, getattr(self, key)) for key, _, _, _ in VITALS]


class AnalysisData(BaseModel):
    model_config = ConfigDict(frozen=True)

    scores: CategoryScores
    vitals: CoreWebVitals


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    strategy: Strategy
    scores: CategoryScores
    vitals: CoreWebVitals
    timestamp: str = Field(default_factory=utc_timestamp)


class AnalysisFailure(BaseModel):
    url: str
    error: str


class BatchOutcome(BaseModel):
    results: List[AnalysisResult] = []
    failures: List[AnalysisFailure] = []


class ThresholdAlert(BaseModel):
    url: str
    category: str
    score: int

    def __str__(self) -> str:
        return f"{self.url} - {self.category}: {self.score}%"


class Session(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    base_url: str = Field(alias="baseUrl")
    slugs: List[str]
    strategy: Strategy
    timestamp: str = Field(default_factory=utc_timestamp)


class RcConfig(BaseModel):
    """Contents of a .pagespeedrc.json project file."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: Optional[str] = Field(None, alias="baseUrl")
    strategy: Optional[Strategy] = None
    slugs: Optional[str] = None
    export: Optional[List[ExportFormat]] = None
    output: Optional[str] = None
