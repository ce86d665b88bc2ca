"""calculation_engine package"""
from .calculator import (
    CalculationResult, CostCalculator, LineItem, RouteNotFoundError, billed_ihs_years,
)
__all__ = [
    "CalculationResult", "CostCalculator", "LineItem", "RouteNotFoundError",
    "billed_ihs_years",
]
