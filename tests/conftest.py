"""
tests/conftest.py
Shared fixtures: a small route/fee/rules fixture set, both as typed tables
and written out as a site tree on disk.
Run with: pytest tests/ -v
"""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from calculation_engine.calculator import CostCalculator
from knowledge_base.models import FeeEntry, Route, Rules

IHS_STANDARD = 624.0
IHS_STUDENT  = 470.0


def _route(**overrides) -> dict:
    base = dict(
        route_id="skilled-worker",
        name="Skilled Worker visa",
        category="work",
        indexable=True,
        apply_from_options="both",
        duration_policy="fixed",
        duration_options=[12, 24, 36],
        ihs_policy="standard",
        fee_items=["skilled_worker_outside_uk", "skilled_worker_inside_uk"],
        extras_supported=["priority", "super_priority"],
        last_reviewed="2025-01-15",
    )
    base.update(overrides)
    return base


RAW_ROUTES = [
    _route(),
    _route(
        route_id="student", name="Student visa", category="study",
        duration_policy="custom", duration_options=None, max_duration_months=48,
        ihs_policy="required_student",
        fee_items=["student_outside_uk", "student_inside_uk"],
    ),
    _route(
        route_id="standard-visitor", name="Standard Visitor visa", category="visit",
        apply_from_options="outside_uk", duration_options=[6], ihs_policy="not_required",
        fee_items=["standard_visitor"], extras_supported=["priority"],
    ),
    _route(
        route_id="health-and-care-worker", name="Health and Care Worker visa",
        indexable=False, ihs_policy="exempt",
        fee_items=["health_and_care_outside_uk", "health_and_care_inside_uk"],
    ),
    _route(
        route_id="indefinite-leave-to-remain", name="Indefinite Leave to Remain",
        category="settlement", apply_from_options="inside_uk",
        duration_policy="permanent", duration_options=None, ihs_policy="not_required",
        fee_items=["ilr_inside_uk"],
    ),
    _route(
        route_id="british-citizenship", name="British citizenship", category="citizenship",
        apply_from_options="inside_uk", duration_policy="permanent", duration_options=None,
        ihs_policy="not_required", fee_items=["naturalisation"],
        extras_supported=["citizenship_ceremony"],
    ),
]

RAW_FEES = {
    "skilled_worker_outside_uk":  {"name": "Skilled Worker (outside)", "amount_inside_uk": None, "amount_outside_uk": 719},
    "skilled_worker_inside_uk":   {"name": "Skilled Worker (inside)", "amount_inside_uk": 827, "amount_outside_uk": None},
    "student_outside_uk":         {"name": "Student (outside)", "amount_inside_uk": None, "amount_outside_uk": 490},
    "student_inside_uk":          {"name": "Student (inside)", "amount_inside_uk": 490, "amount_outside_uk": None},
    "standard_visitor":           {"name": "Standard Visitor", "amount_inside_uk": None, "amount_outside_uk": 115},
    "health_and_care_outside_uk": {"name": "H&C (outside)", "amount_inside_uk": None, "amount_outside_uk": 284},
    "health_and_care_inside_uk":  {"name": "H&C (inside)", "amount_inside_uk": 284, "amount_outside_uk": None},
    "ilr_inside_uk":              {"name": "ILR", "amount_inside_uk": 2885, "amount_outside_uk": None},
    "naturalisation":             {"name": "Naturalisation", "amount_inside_uk": 1500, "amount_outside_uk": None},
    "citizenship_ceremony":       {"name": "Ceremony", "amount_inside_uk": 130, "amount_outside_uk": None},
    "priority":                   {"name": "Priority", "amount_inside_uk": 500, "amount_outside_uk": 250},
    "super_priority":             {"name": "Super priority", "amount_inside_uk": 1000, "amount_outside_uk": 956},
}

RAW_RULES = {
    "ihs_rates": {
        "standard": {"rate_per_year": IHS_STANDARD},
        "student":  {"rate_per_year": IHS_STUDENT},
    }
}

RAW_SITE = {"site_name": "Test Visa Calculator", "currency_symbol": "£"}


@pytest.fixture
def routes() -> list[Route]:
    return [Route.model_validate(r) for r in RAW_ROUTES]


@pytest.fixture
def fees() -> dict[str, FeeEntry]:
    return {k: FeeEntry.model_validate(v) for k, v in RAW_FEES.items()}


@pytest.fixture
def rules() -> Rules:
    return Rules.model_validate(RAW_RULES)


@pytest.fixture
def calculator(routes, fees, rules) -> CostCalculator:
    return CostCalculator(routes, fees, rules)


def route_with(**overrides) -> Route:
    """Return the skilled-worker fixture route with optional field overrides."""
    return Route.model_validate(_route(**overrides))


def write_site(root: Path, routes=None, fees=None, rules=None, site=None, content_for=()) -> Path:
    """Write a site tree (data/ + content/routes/) under root and return root."""
    data = root / "data"
    data.mkdir(parents=True, exist_ok=True)
    (data / "routes.json").write_text(json.dumps(RAW_ROUTES if routes is None else routes))
    (data / "fees.json").write_text(json.dumps(RAW_FEES if fees is None else fees))
    (data / "rules.json").write_text(json.dumps(RAW_RULES if rules is None else rules))
    (data / "site.json").write_text(json.dumps(RAW_SITE if site is None else site))
    content = root / "content" / "routes"
    content.mkdir(parents=True, exist_ok=True)
    for route_id in content_for:
        (content / f"{route_id}.json").write_text(json.dumps({"intro": f"About {route_id}"}))
    return root


@pytest.fixture
def site_root(tmp_path) -> Path:
    indexable = [r["route_id"] for r in RAW_ROUTES if r["indexable"]]
    return write_site(tmp_path, content_for=indexable)
