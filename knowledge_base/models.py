"""
knowledge_base/models.py
Typed records for the route, fee and rules tables.

Every table is validated when it is loaded, so the calculator and renderer
can read fields directly instead of probing dicts.
"""
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ApplyFromOption = Literal["inside_uk", "outside_uk", "both"]
DurationPolicy = Literal["fixed", "custom", "permanent"]
IHSPolicy      = Literal["not_required", "exempt", "required_student", "standard"]
Extra          = Literal["priority", "super_priority", "citizenship_ceremony"]

# Identifier fragments that historically implied the Life in the UK test.
# Only consulted when a route does not state requires_life_in_uk_test.
LIFE_IN_UK_TEST_MARKERS = ("indefinite-leave", "citizenship")


class Route(BaseModel):
    model_config = ConfigDict(extra="allow")

    route_id:            str = Field(..., min_length=1)
    name:                str
    category:            str
    indexable:           bool
    apply_from_options:  ApplyFromOption
    duration_policy:     DurationPolicy
    duration_options:    Optional[list[int]] = None
    max_duration_months: Optional[int] = Field(default=None, gt=0)
    ihs_policy:          IHSPolicy
    fee_items:           list[str] = Field(default_factory=list)
    extras_supported:    list[Extra] = Field(default_factory=list)
    last_reviewed:       str = ""
    requires_life_in_uk_test: bool = False
    description:         Optional[str] = None
    processing_time:     Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_life_in_uk_test(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("requires_life_in_uk_test") is None:
            route_id = str(data.get("route_id", ""))
            data = {
                **data,
                "requires_life_in_uk_test": any(m in route_id for m in LIFE_IN_UK_TEST_MARKERS),
            }
        return data

    @model_validator(mode="after")
    def _check_duration_policy(self):
        if self.duration_policy == "fixed" and not self.duration_options:
            raise ValueError(
                f"route '{self.route_id}' has a fixed duration policy but no duration_options"
            )
        if self.duration_options and any(d < 1 for d in self.duration_options):
            raise ValueError(f"route '{self.route_id}' has a non-positive duration option")
        return self

    def supports(self, extra: str) -> bool:
        return extra in self.extras_supported

    @property
    def location_selectable(self) -> bool:
        return self.apply_from_options == "both"

    @property
    def has_duration_field(self) -> bool:
        return self.duration_policy != "permanent"

    @property
    def ihs_applies(self) -> bool:
        return self.ihs_policy not in ("not_required", "exempt")


class FeeEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    name:              str = ""
    amount_inside_uk:  Optional[float] = Field(default=None, ge=0)
    amount_outside_uk: Optional[float] = Field(default=None, ge=0)
    notes:             Optional[str] = None

    @model_validator(mode="after")
    def _require_an_amount(self):
        if self.amount_inside_uk is None and self.amount_outside_uk is None:
            raise ValueError("fee entry needs amount_inside_uk or amount_outside_uk")
        return self

    def amount_for(self, apply_from: str) -> Optional[float]:
        """Amount for exactly this location, or None when not published."""
        if apply_from == "inside_uk":
            return self.amount_inside_uk
        return self.amount_outside_uk

    def amount_with_fallback(self, apply_from: str) -> float:
        """Amount for the location, falling back to whichever amount exists."""
        amount = self.amount_for(apply_from)
        if amount is not None:
            return amount
        return self.amount_inside_uk or self.amount_outside_uk or 0.0


class IHSRate(BaseModel):
    model_config = ConfigDict(extra="allow")

    rate_per_year: float = Field(..., ge=0)


class IHSRates(BaseModel):
    standard: IHSRate
    student:  IHSRate


class Rules(BaseModel):
    model_config = ConfigDict(extra="allow")

    ihs_rates: IHSRates

    def ihs_rate_for(self, ihs_policy: str) -> float:
        if ihs_policy == "required_student":
            return self.ihs_rates.student.rate_per_year
        return self.ihs_rates.standard.rate_per_year


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    site_name:       str = "UK Visa Cost Calculator"
    currency_symbol: str = "£"
    disclaimer:      str = ""
