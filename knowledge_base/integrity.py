"""
knowledge_base/integrity.py
Cross-table integrity checks over the raw route and fee tables.

Shared by the load-time validation in JSONStore and the offline
`main.py validate` command. The tables are untrusted JSON, so every check
tolerates keys and ids of the wrong type and reports them instead of failing.
"""
from pathlib import Path
from typing import Any, Iterable


def _label(route: dict[str, Any]) -> str:
    rid = route.get("route_id")
    return rid if isinstance(rid, str) else repr(rid)


def invalid_route_ids(routes: list[dict[str, Any]]) -> list[str]:
    """Routes whose route_id is present but not a non-empty string."""
    problems: list[str] = []
    for index, route in enumerate(routes):
        rid = route.get("route_id")
        if rid is None:
            continue  # reported by missing_required_fields
        if not isinstance(rid, str) or not rid:
            problems.append(f"Route at index {index} has an invalid route_id: {rid!r}")
    return problems


def duplicate_route_ids(routes: list[dict[str, Any]]) -> list[str]:
    """String route ids that appear more than once, in first-repeat order."""
    seen: set[str] = set()
    dupes: list[str] = []
    for route in routes:
        rid = route.get("route_id")
        if not isinstance(rid, str):
            continue
        if rid in seen and rid not in dupes:
            dupes.append(rid)
        seen.add(rid)
    return dupes


def missing_fee_references(
    routes: list[dict[str, Any]], fees: dict[str, Any]
) -> list[str]:
    problems: list[str] = []
    for route in routes:
        fee_items = route.get("fee_items")
        if not isinstance(fee_items, list):
            continue
        for fee_key in fee_items:
            if not isinstance(fee_key, str):
                problems.append(f'Route "{_label(route)}" has a non-string fee key: {fee_key!r}')
            elif not fees.get(fee_key):
                problems.append(f'Route "{_label(route)}" references missing fee "{fee_key}"')
    return problems


def missing_required_fields(
    routes: list[dict[str, Any]], required: Iterable[str]
) -> list[str]:
    required = list(required)
    problems: list[str] = []
    for route in routes:
        for field_name in required:
            if route.get(field_name) is None:
                problems.append(f'Route "{_label(route)}" missing required field: {field_name}')
    return problems


def routes_missing_content(
    routes: list[dict[str, Any]], content_dir: Path
) -> list[tuple[str, Path]]:
    """Indexable routes with no content/routes/<route_id>.json file."""
    missing: list[tuple[str, Path]] = []
    for route in routes:
        rid = route.get("route_id")
        if route.get("indexable") is not True or not isinstance(rid, str):
            continue
        path = content_dir / f"{rid}.json"
        if not path.exists():
            missing.append((rid, path))
    return missing
