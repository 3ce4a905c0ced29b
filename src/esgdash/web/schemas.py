"""Pydantic schemas for API request validation."""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class SiteCreate(BaseModel):
    name: str = Field(min_length=1)
    location: str | None = None
    type: str | None = None


class CategoryIn(BaseModel):
    name: str
    type: str


class ParameterIn(BaseModel):
    name: str
    unit: str | None = None
    category_id: int


class SubmissionCreate(BaseModel):
    """A new submission.

    The reporting period is given either as explicit dates or as a
    calendar month and year. ``values`` maps parameter id to the entered
    value; ``by_name`` accepts parameter names instead of ids.
    """

    site_id: int | None = None
    period_start: date | None = None
    period_end: date | None = None
    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = Field(default=None, ge=1, le=9999)
    values: dict[str, Any] = Field(default_factory=dict)
    by_name: bool = False
    status: Literal["draft", "pending"] = "pending"
    submitted_by: str | None = None

    @model_validator(mode="after")
    def check_period(self):
        if (self.month is None) != (self.year is None):
            raise ValueError("month and year must be given together")
        if self.month is not None and (self.period_start or self.period_end):
            raise ValueError("give either month/year or period_start/period_end")
        return self


class RejectRequest(BaseModel):
    comment: str
    reviewer: str | None = None


class ReviewRequest(BaseModel):
    reviewer: str | None = None


class EmissionFactorCreate(BaseModel):
    category: str
    item: str
    unit_of_measure: str
    factor_2023: float = 0
    factor_2024: float = 0
    factor_2025: float = 0


class EmissionFactorUpdate(BaseModel):
    category: str | None = None
    item: str | None = None
    unit_of_measure: str | None = None
    factor_2023: float | None = None
    factor_2024: float | None = None
    factor_2025: float | None = None


class UserCreate(BaseModel):
    username: str
    email: str
    role: str = "user"
    status: str = "active"


class UserUpdate(BaseModel):
    role: str | None = None
    status: str | None = None
