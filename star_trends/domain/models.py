from datetime import date, datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, computed_field, model_validator

class SearchQuery(BaseModel):
    """
    User-supplied search request. Dates are calendar days; the effective
    window actually used for counting is derived by `resolve_window`.
    """
    model_config = ConfigDict(frozen=True)

    name_pattern: Optional[str] = Field(default=None, description="Token matched against repository names")
    language: Optional[str] = Field(default=None, description="Primary language qualifier")
    start_date: Optional[date] = Field(default=None, description="First day of the growth window")
    end_date: Optional[date] = Field(default=None, description="Last day of the growth window")
    min_stars: int = Field(default=0, ge=0, description="Minimum total stars")
    min_increased_stars: int = Field(default=0, ge=0, description="Minimum stars gained in the window")

    @model_validator(mode="after")
    def _check_date_order(self) -> "SearchQuery":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date.")
        return self


class DateWindow(BaseModel):
    """Inclusive [start, end] range of calendar days."""
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> "DateWindow":
        if self.start > self.end:
            raise ValueError("window start must not be after window end.")
        return self


class Repository(BaseModel):
    """
    Immutable repository metadata as returned by the Search API.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Numeric GitHub repository ID")
    full_name: str = Field(..., description="owner/name")
    html_url: str = Field(..., description="Browser URL of the repository")
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = Field(..., ge=0, description="Total number of stargazers")


class StarEvent(BaseModel):
    """A single WatchEvent (a user starring the repository)."""
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime


class GrowthStatus(str, Enum):
    COMPLETE = "complete"
    RATE_LIMITED = "rate_limited"
    ERRORED = "errored"


class StarGrowth(BaseModel):
    """Stars gained by one repository inside one window."""
    model_config = ConfigDict(frozen=True)

    repository_id: int
    full_name: str
    window_start: date
    window_end: date
    count: int = Field(default=0, ge=0)
    status: GrowthStatus = GrowthStatus.COMPLETE


class EnrichedResult(BaseModel):
    """
    Search metadata joined with the star growth computed for it.
    Counts from non-complete growth are reported as 0 and flagged degraded.
    """
    model_config = ConfigDict(frozen=True)

    repository: Repository
    growth: StarGrowth

    @computed_field
    @property
    def increased_stars(self) -> int:
        if self.growth.status is not GrowthStatus.COMPLETE:
            return 0
        return self.growth.count

    @computed_field
    @property
    def degraded(self) -> bool:
        return self.growth.status is not GrowthStatus.COMPLETE


class TrendingSearchResult(BaseModel):
    """What the presentation layer receives for one search."""
    model_config = ConfigDict(frozen=True)

    query: str = Field(..., description="Search API query string that was sent")
    window: DateWindow = Field(..., description="Effective window after clamping")
    results: List[EnrichedResult] = Field(default_factory=list)
