"""
api/models.py
Pydantic request/response models.

The calculate endpoint accepts raw form values (strings or numbers, exactly
as a browser form would post them); the form validator decides what is
acceptable for the chosen route.
"""
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

FormValue = Optional[Union[bool, int, float, str]]


class CalculationRequest(BaseModel):
    route_id:           str       = Field(..., min_length=1, description="Route identifier, e.g. 'skilled-worker'")
    apply_from:         FormValue = Field(default=None, description="'inside_uk' or 'outside_uk'; ignored when the route allows only one")
    duration:           FormValue = Field(default=None, description="Visa duration in months; ignored for permanent routes")
    applicants:         FormValue = Field(default=None, description="Main applicants, 1-10 (blank means 1)")
    dependants:         FormValue = Field(default=None, description="Dependants, 0-10 (blank means 0)")
    add_priority:       FormValue = Field(default=False, description="Add priority service when the route offers it")
    add_super_priority: FormValue = Field(default=False, description="Add super priority service when the route offers it")

    def form_values(self) -> dict[str, Any]:
        return self.model_dump(exclude={"route_id"})


class LineItemOut(BaseModel):
    item:   str
    amount: float
    amount_formatted: str


class CalculationResponse(BaseModel):
    success:         bool
    request_id:      Optional[str] = None
    timestamp:       str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    route_id:        str
    route_name:      str
    breakdown:       list[LineItemOut]
    total:           float
    total_formatted: str
    last_reviewed:   str


class RouteSummary(BaseModel):
    route_id:        str
    name:            str
    category:        str
    indexable:       bool
    description:     Optional[str] = None
    processing_time: Optional[str] = None
    last_reviewed:   str


class RouteDetail(BaseModel):
    route:   dict[str, Any]
    content: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    success:    bool          = False
    error:      str
    detail:     Optional[str] = None
    errors:     list[str]     = []
    request_id: Optional[str] = None
