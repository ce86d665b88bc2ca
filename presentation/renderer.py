"""
presentation/renderer.py
Calculator form and result rendering.

The form is described first as a FormSchema (one FormField per input, driven
by the route's declared policy) and then rendered to an HTML fragment, so the
API can serve either the schema or ready-made markup.
"""
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from calculation_engine.calculator import CalculationResult
from config.settings import settings
from knowledge_base.models import Route


@dataclass
class FormOption:
    value: str
    label: str


@dataclass
class FormField:
    name: str
    kind: str                      # select | number | hidden | checkbox
    label: str = ""
    value: Any = None
    options: list[FormOption] = field(default_factory=list)
    min: Optional[int] = None
    max: Optional[int] = None
    required: bool = False


@dataclass
class FormSchema:
    route_id: str
    route_name: str
    last_reviewed: str
    fields: list[FormField] = field(default_factory=list)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get(self, name: str) -> Optional[FormField]:
        return next((f for f in self.fields if f.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def format_currency(amount: float) -> str:
    """£ with thousands separators; pence only when the amount has them."""
    if float(amount).is_integer():
        return f"{settings.currency_symbol}{amount:,.0f}"
    return f"{settings.currency_symbol}{amount:,.2f}"


def build_form(route: Route) -> FormSchema:
    schema = FormSchema(
        route_id=route.route_id,
        route_name=route.name,
        last_reviewed=route.last_reviewed,
    )
    fields = schema.fields

    if route.location_selectable:
        fields.append(FormField(
            name="apply_from", kind="select", label="Applying From", required=True,
            value="outside_uk",
            options=[FormOption("outside_uk", "Outside UK"), FormOption("inside_uk", "Inside UK")],
        ))
    else:
        fields.append(FormField(name="apply_from", kind="hidden", value=route.apply_from_options))

    if route.duration_policy == "fixed":
        fields.append(FormField(
            name="duration", kind="select", label="Visa Duration (months)", required=True,
            value=route.duration_options[0],
            options=[FormOption(str(d), f"{d} months") for d in route.duration_options],
        ))
    elif route.duration_policy == "custom":
        fields.append(FormField(
            name="duration", kind="number", label="Visa Duration (months)", required=True,
            value=settings.default_custom_duration,
            min=1, max=route.max_duration_months or settings.default_max_duration,
        ))
    else:
        fields.append(FormField(name="duration", kind="hidden", value=0))

    fields.append(FormField(
        name="applicants", kind="number", label="Number of Main Applicants", required=True,
        value=settings.min_applicants, min=settings.min_applicants, max=settings.max_applicants,
    ))
    fields.append(FormField(
        name="dependants", kind="number", label="Number of Dependants",
        value=settings.min_dependants, min=settings.min_dependants, max=settings.max_dependants,
    ))

    if route.supports("priority"):
        fields.append(FormField(name="add_priority", kind="checkbox", label="Add Priority Service", value=False))
    if route.supports("super_priority"):
        fields.append(FormField(
            name="add_super_priority", kind="checkbox", label="Add Super Priority Service", value=False,
        ))

    return schema


# ── HTML (Jinja2 templates in presentation/templates/) ───────────────────────

_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["currency"] = format_currency


def render_form_html(route: Route) -> str:
    return _env.get_template("form.html").render(form=build_form(route))


def render_result_html(result: CalculationResult) -> str:
    return _env.get_template("result.html").render(result=result)


def render_errors_html(issues: list[str]) -> str:
    return _env.get_template("errors.html").render(issues=issues)
