"""presentation package"""
from .renderer import (
    FormField, FormOption, FormSchema, build_form, format_currency,
    render_errors_html, render_form_html, render_result_html,
)
__all__ = [
    "FormField", "FormOption", "FormSchema", "build_form", "format_currency",
    "render_errors_html", "render_form_html", "render_result_html",
]
