"""
guardrails/form_validator.py
Checks raw calculator-form input against a route's form policy before any
calculation is attempted. Every violated rule is reported together; a single
violation blocks the calculation.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from config.settings import settings
from knowledge_base.models import Route
from monitoring import VALIDATION_FAILURES, get_logger
from query_processor.models import CalculationParams

log = get_logger(__name__)

MSG_APPLY_FROM = "Please select where you are applying from."
MSG_DURATION   = "Please enter a valid visa duration (at least 1 month)."
MSG_DURATION_OPTION = "Please choose one of the listed visa durations."
MSG_APPLICANTS = (
    f"Number of main applicants must be between "
    f"{settings.min_applicants} and {settings.max_applicants}."
)
MSG_DEPENDANTS = (
    f"Number of dependants must be between "
    f"{settings.min_dependants} and {settings.max_dependants}."
)

_TRUTHY = {"1", "true", "on", "yes"}


@dataclass
class ValidationReport:
    passed: bool
    issues: list[str] = field(default_factory=list)
    params: Optional[CalculationParams] = None


def _parse_int(value: Any, default: int) -> Optional[int]:
    """Form value as int; blank means default, anything non-integral is None."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY if value is not None else False


class FormValidator:

    def validate(self, route: Route, form: Mapping[str, Any]) -> ValidationReport:
        issues: list[str] = []

        # Applying from
        if route.location_selectable:
            apply_from = form.get("apply_from") or None
            if apply_from not in ("inside_uk", "outside_uk"):
                issues.append(MSG_APPLY_FROM)
        else:
            apply_from = route.apply_from_options

        # Duration
        duration: Optional[int] = 0
        if route.has_duration_field:
            duration = _parse_int(form.get("duration"), 0)
            if duration is None or duration < 1:
                issues.append(MSG_DURATION)
            elif route.duration_policy == "fixed" and duration not in route.duration_options:
                issues.append(MSG_DURATION_OPTION)
            elif route.duration_policy == "custom":
                ceiling = route.max_duration_months or settings.default_max_duration
                if duration > ceiling:
                    issues.append(f"Visa duration cannot exceed {ceiling} months.")

        applicants = _parse_int(form.get("applicants"), settings.min_applicants)
        if applicants is None or not settings.min_applicants <= applicants <= settings.max_applicants:
            issues.append(MSG_APPLICANTS)

        dependants = _parse_int(form.get("dependants"), settings.min_dependants)
        if dependants is None or not settings.min_dependants <= dependants <= settings.max_dependants:
            issues.append(MSG_DEPENDANTS)

        if issues:
            VALIDATION_FAILURES.labels(check_type="form").inc()
            log.warning("Form validation failed", route_id=route.route_id, issues=issues)
            return ValidationReport(passed=False, issues=issues)

        params = CalculationParams(
            route_id=route.route_id,
            apply_from=apply_from,
            duration_months=duration,
            applicants=applicants,
            dependants=dependants,
            add_priority=route.supports("priority") and _parse_flag(form.get("add_priority")),
            add_super_priority=(
                route.supports("super_priority") and _parse_flag(form.get("add_super_priority"))
            ),
        )
        return ValidationReport(passed=True, params=params)
