"""
calculation_engine/calculator.py
Visa cost calculator.

Turns a route, the fee table, the IHS rules and the user's choices into an
ordered breakdown. Line items are always produced in this order, skipping
the ones that do not apply:

  1. Application fee            fee for the apply-from location × heads
  2. Immigration Health Surcharge  rate × billed years × heads
  3. Priority service           only when requested and supported
  4. Super priority service     only when requested and supported
  5. Citizenship ceremony       whenever the route supports it
  6. Life in the UK test        flat fee per head on settlement/citizenship routes

"heads" is applicants + dependants throughout.
"""
import math
from dataclasses import dataclass, field
from typing import Optional

from config.settings import settings
from knowledge_base.json_store import JSONStore
from knowledge_base.models import FeeEntry, Route, Rules
from monitoring import CALC_REQUESTS, get_logger, timed
from query_processor.models import CalculationParams

log = get_logger(__name__)


class RouteNotFoundError(LookupError):
    def __init__(self, route_id: str) -> None:
        super().__init__(f"Route not found: {route_id}")
        self.route_id = route_id


@dataclass
class LineItem:
    item: str
    amount: float


@dataclass
class CalculationResult:
    route_id: str
    breakdown: list[LineItem] = field(default_factory=list)
    total: float = 0.0
    last_reviewed: str = ""

    def add(self, item: str, amount: float) -> None:
        self.breakdown.append(LineItem(item=item, amount=amount))


def billed_ihs_years(duration_months: int) -> float:
    """Round the stay up to the next half year: 1-6 months -> 0.5, 7-12 -> 1.0."""
    return math.ceil(duration_months / 6) * 0.5


class CostCalculator:
    """
    Stateless over its inputs: the tables are handed in once and never
    modified, so one instance can serve any number of calculations.
    """

    def __init__(
        self,
        routes: list[Route],
        fees: dict[str, FeeEntry],
        rules: Rules,
    ) -> None:
        self.routes = routes
        self.fees = fees
        self.rules = rules
        self._by_id = {r.route_id: r for r in routes}

    @classmethod
    def from_store(cls, store: Optional[JSONStore] = None) -> "CostCalculator":
        tables = (store or JSONStore()).get_tables()
        return cls(tables.routes, tables.fees, tables.rules)

    @classmethod
    async def from_store_async(cls, store: Optional[JSONStore] = None) -> "CostCalculator":
        tables = await (store or JSONStore()).load_core_tables()
        return cls(tables.routes, tables.fees, tables.rules)

    def find_route(self, route_id: str) -> Route:
        route = self._by_id.get(route_id)
        if route is None:
            raise RouteNotFoundError(route_id)
        return route

    @timed("calculate")
    def calculate(self, params: CalculationParams) -> CalculationResult:
        try:
            route = self.find_route(params.route_id)
        except RouteNotFoundError:
            CALC_REQUESTS.labels(route_id="unknown", status="route_not_found").inc()
            log.warning("Calculation for unknown route", route_id=params.route_id)
            raise

        heads = params.total_applicants
        result = CalculationResult(route_id=route.route_id, last_reviewed=route.last_reviewed)

        # Application fee
        fee_key = self.get_fee_key(route, params.apply_from)
        if fee_key and fee_key in self.fees:
            fee_amount = self.get_fee_amount(fee_key, params.apply_from)
            plural = "s" if heads > 1 else ""
            result.add(f"Application Fee ({heads} applicant{plural})", fee_amount * heads)

        # Immigration Health Surcharge
        if route.ihs_applies:
            ihs_cost = self.calculate_ihs(route, params.duration_months, heads)
            if ihs_cost > 0:
                result.add("Immigration Health Surcharge", ihs_cost)

        # Priority services
        if params.add_priority and route.supports("priority"):
            result.add("Priority Service", self.get_service_fee("priority", params.apply_from) * heads)

        if params.add_super_priority and route.supports("super_priority"):
            result.add(
                "Super Priority Service",
                self.get_service_fee("super_priority", params.apply_from) * heads,
            )

        if route.supports("citizenship_ceremony"):
            ceremony = self.fees.get("citizenship_ceremony")
            per_head = (ceremony.amount_inside_uk or 0.0) if ceremony else 0.0
            result.add("Citizenship Ceremony", per_head * heads)

        if route.requires_life_in_uk_test:
            result.add("Life in the UK Test", settings.life_in_uk_test_fee * heads)

        result.total = sum(line.amount for line in result.breakdown)

        CALC_REQUESTS.labels(route_id=route.route_id, status="ok").inc()
        log.info(
            "Calculation complete",
            route_id=route.route_id,
            apply_from=params.apply_from,
            heads=heads,
            items=len(result.breakdown),
            total=result.total,
        )
        return result

    def calculate_ihs(self, route: Route, duration_months: int, heads: int) -> float:
        rate = self.rules.ihs_rate_for(route.ihs_policy)
        return rate * billed_ihs_years(duration_months or 0) * heads

    @staticmethod
    def get_fee_key(route: Route, apply_from: str) -> Optional[str]:
        """
        Pick the route's fee key for a location: the first key naming the
        location ("inside"/"outside"), else the route's first key.
        """
        if not route.fee_items:
            return None
        marker = "inside" if apply_from == "inside_uk" else "outside"
        return next((k for k in route.fee_items if marker in k), route.fee_items[0])

    def get_fee_amount(self, fee_key: str, apply_from: str) -> float:
        fee = self.fees.get(fee_key)
        if fee is None:
            return 0.0
        return fee.amount_with_fallback(apply_from)

    def get_service_fee(self, fee_key: str, apply_from: str) -> float:
        """Per-head price of an optional service; unpublished amounts count as zero."""
        fee = self.fees.get(fee_key)
        if fee is None:
            return 0.0
        return fee.amount_for(apply_from) or 0.0
