"""
knowledge_base/json_store.py
Structured JSON Store

Loads the route, fee and rules tables plus site config and per-route
content from the static site tree. Paths are resolved the way a page at a
given URL depth would request them, and every parsed file is cached per
store instance.
"""
import asyncio
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from config.settings import settings
from knowledge_base.errors import DataLoadError, DataValidationError
from knowledge_base.integrity import (
    duplicate_route_ids,
    invalid_route_ids,
    missing_fee_references,
    missing_required_fields,
)
from knowledge_base.models import FeeEntry, Route, Rules, SiteConfig
from monitoring import DATA_LOADS, get_logger

log = get_logger(__name__)


def resolve_base_path(page_path: str = "/") -> str:
    """
    Relative prefix from a page back to the site root.

    "/" -> "./", "/visas/" -> "../", "/visas/work/skilled-worker/" -> "../../../".
    A trailing file name ("/visas/index.html") does not add depth.
    """
    directory = page_path if page_path.endswith("/") else page_path.rsplit("/", 1)[0] + "/"
    depth = len([part for part in directory.split("/") if part])
    if depth == 0:
        return "./"
    return "../" * depth


def resolve_path(path: str, page_path: str = "/") -> str:
    """Resolve a site-root-relative data path (e.g. 'data/routes.json') for a page."""
    return resolve_base_path(page_path) + path


class JSONCache:
    """Parsed JSON documents keyed by resolved URL. One instance per session."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def get(self, url: str) -> Any:
        return self._entries.get(url)

    def put(self, url: str, value: Any) -> None:
        self._entries[url] = value

    def __contains__(self, url: str) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


@dataclass(frozen=True)
class DataTables:
    """The three validated tables the calculator needs."""
    routes: list[Route]
    fees: dict[str, FeeEntry]
    rules: Rules


def build_tables(
    raw_routes: Any, raw_fees: Any, raw_rules: Any
) -> DataTables:
    """
    Validate raw JSON into typed tables and enforce the cross-table invariants
    (unique route ids, fee keys present, required fields populated).
    """
    if not isinstance(raw_routes, list):
        raise DataValidationError(["routes table must be a JSON array"])
    if not all(isinstance(r, dict) for r in raw_routes):
        raise DataValidationError(["every route must be a JSON object"])
    if not isinstance(raw_fees, dict):
        raise DataValidationError(["fees table must be a JSON object"])
    if not isinstance(raw_rules, dict):
        raise DataValidationError(["rules table must be a JSON object"])

    issues: list[str] = invalid_route_ids(raw_routes)
    dupes = duplicate_route_ids(raw_routes)
    if dupes:
        issues.append(f"Duplicate route_ids found: {', '.join(dupes)}")
    issues += missing_fee_references(raw_routes, raw_fees)
    issues += missing_required_fields(raw_routes, settings.required_route_fields)

    routes: list[Route] = []
    for raw in raw_routes:
        try:
            routes.append(Route.model_validate(raw))
        except ValidationError as exc:
            issues.append(f'Route "{raw.get("route_id")}": {exc}')

    fees: dict[str, FeeEntry] = {}
    for key, raw in raw_fees.items():
        try:
            fees[key] = FeeEntry.model_validate(raw)
        except ValidationError as exc:
            issues.append(f'Fee "{key}": {exc}')

    rules: Optional[Rules] = None
    try:
        rules = Rules.model_validate(raw_rules)
    except ValidationError as exc:
        issues.append(f"Rules: {exc}")

    if issues:
        log.error("Data tables failed validation", issues=len(issues))
        raise DataValidationError(issues)

    return DataTables(routes=routes, fees=fees, rules=rules)


class JSONStore:
    """
    Read-optimised interface to the static visa data.
    Lazy-loads on first access and caches in memory.
    """

    def __init__(
        self,
        site_root: Optional[Path] = None,
        page_path: str = "/",
        cache: Optional[JSONCache] = None,
    ) -> None:
        self.site_root = Path(site_root or settings.site_root)
        self.page_path = page_path
        self.cache = cache if cache is not None else JSONCache()
        self._tables: Optional[DataTables] = None

    # ── Paths ─────────────────────────────────────────────────────────────────

    def resolve_path(self, path: str) -> str:
        return resolve_path(path, self.page_path)

    def _file_for(self, url: str) -> Path:
        page_dir = self.page_path if self.page_path.endswith("/") else self.page_path.rsplit("/", 1)[0]
        joined = os.path.join(str(self.site_root), page_dir.strip("/"), url)
        return Path(os.path.normpath(joined))

    # ── Loading ───────────────────────────────────────────────────────────────

    def load(self, url: str) -> Any:
        """Return parsed JSON for a resolved URL, reading the file at most once."""
        if url in self.cache:
            DATA_LOADS.labels(status="cached").inc()
            return self.cache.get(url)

        path = self._file_for(url)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            DATA_LOADS.labels(status="error").inc()
            log.error("Data load failed", url=url, path=str(path), error=str(exc))
            raise DataLoadError(url, str(exc)) from exc

        self.cache.put(url, data)
        DATA_LOADS.labels(status="ok").inc()
        log.info("Data file loaded", url=url)
        return data

    async def load_core_tables(self) -> DataTables:
        """Issue the routes/fees/rules loads together and validate once all arrive."""
        if self._tables is not None:
            return self._tables
        urls = [
            self.resolve_path(settings.routes_file),
            self.resolve_path(settings.fees_file),
            self.resolve_path(settings.rules_file),
        ]
        raw_routes, raw_fees, raw_rules = await asyncio.gather(
            *(asyncio.to_thread(self.load, url) for url in urls)
        )
        self._tables = build_tables(raw_routes, raw_fees, raw_rules)
        return self._tables

    def get_tables(self) -> DataTables:
        if self._tables is None:
            self._tables = build_tables(
                self.load(self.resolve_path(settings.routes_file)),
                self.load(self.resolve_path(settings.fees_file)),
                self.load(self.resolve_path(settings.rules_file)),
            )
            log.info(
                "Data tables validated",
                routes=len(self._tables.routes),
                fees=len(self._tables.fees),
            )
        return self._tables

    def clear_cache(self) -> None:
        """Drop every cached file and the validated tables."""
        self.cache.clear()
        self._tables = None
        log.info("JSON store cache cleared, will reload on next access")

    # ── Public API ────────────────────────────────────────────────────────────

    def get_routes(self) -> list[Route]:
        return self.get_tables().routes

    def get_fees(self) -> dict[str, FeeEntry]:
        return self.get_tables().fees

    def get_rules(self) -> Rules:
        return self.get_tables().rules

    def get_site_config(self) -> SiteConfig:
        raw = self.load(self.resolve_path(settings.site_file))
        try:
            return SiteConfig.model_validate(raw)
        except ValidationError as exc:
            raise DataValidationError([f"Site config: {exc}"]) from exc

    def get_route_content(self, route_id: str) -> dict[str, Any]:
        return self.load(self.resolve_path(f"{settings.content_dir}/{route_id}.json"))

    def get_route_by_id(self, route_id: str) -> Optional[Route]:
        return next((r for r in self.get_routes() if r.route_id == route_id), None)

    def get_routes_by_category(self, category: str) -> list[Route]:
        return [r for r in self.get_routes() if r.category == category]

    def get_indexable_routes(self) -> list[Route]:
        return [r for r in self.get_routes() if r.indexable]

    def get_categories(self) -> list[str]:
        """Distinct categories in route-table order."""
        return list(dict.fromkeys(r.category for r in self.get_routes()))

    def count(self) -> int:
        """Return total number of routes in the store."""
        return len(self.get_routes())
