"""
query_processor/models.py
Shared CalculationParams dataclass used by the form validator, calculator
and API layer. Kept in a separate module to avoid circular imports.
"""
from dataclasses import dataclass


@dataclass
class CalculationParams:
    """
    Normalised user choices for one estimate. Created from form input,
    consumed by CostCalculator.calculate, then discarded.
    """
    route_id: str
    apply_from: str = "outside_uk"
    duration_months: int = 0
    applicants: int = 1
    dependants: int = 0
    add_priority: bool = False
    add_super_priority: bool = False

    @property
    def total_applicants(self) -> int:
        return self.applicants + self.dependants
