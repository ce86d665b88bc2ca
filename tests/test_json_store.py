"""
tests/test_json_store.py
Path resolution, caching and load-time validation of the data store.
"""
import asyncio
import json

import pytest

from calculation_engine.calculator import CostCalculator
from conftest import RAW_FEES, RAW_ROUTES, RAW_RULES, write_site
from knowledge_base.errors import DataLoadError, DataValidationError
from knowledge_base.json_store import JSONCache, JSONStore, resolve_base_path, resolve_path
from knowledge_base.models import Route


class TestPathResolution:

    @pytest.mark.parametrize("page_path,base", [
        ("/", "./"),
        ("/index.html", "./"),
        ("/work/", "../"),
        ("/work/skilled-worker/", "../../"),
        ("/visas/work/skilled-worker/", "../../../"),
        ("/work/skilled-worker/index.html", "../../"),
    ])
    def test_base_path_by_depth(self, page_path, base):
        assert resolve_base_path(page_path) == base

    def test_resolve_path_prefixes_base(self):
        assert resolve_path("data/routes.json", "/work/") == "../data/routes.json"

    def test_nested_page_reads_same_file(self, site_root):
        root_store   = JSONStore(site_root=site_root, page_path="/")
        nested_store = JSONStore(site_root=site_root, page_path="/work/skilled-worker/")
        assert nested_store.resolve_path("data/fees.json") == "../../data/fees.json"
        assert nested_store.load(nested_store.resolve_path("data/fees.json")) == \
            root_store.load(root_store.resolve_path("data/fees.json"))


class TestCaching:

    def test_second_load_reuses_cached_value(self, site_root):
        store = JSONStore(site_root=site_root)
        url = store.resolve_path("data/routes.json")
        first = store.load(url)
        (site_root / "data" / "routes.json").write_text("[]")
        assert store.load(url) is first
        assert url in store.cache

    def test_clear_cache_forces_reload(self, site_root):
        store = JSONStore(site_root=site_root)
        assert store.count() == len(RAW_ROUTES)
        (site_root / "data" / "routes.json").write_text(json.dumps(RAW_ROUTES[:2]))
        store.clear_cache()
        assert len(store.cache) == 0
        assert store.count() == 2

    def test_injected_cache_is_shared(self, site_root):
        cache = JSONCache()
        JSONStore(site_root=site_root, cache=cache).get_tables()
        assert len(cache) == 3
        other = JSONStore(site_root=site_root, cache=cache)
        (site_root / "data" / "fees.json").write_text("not json")
        assert "priority" in other.get_fees()


class TestLoadFailures:

    def test_missing_file_raises_load_error(self, tmp_path):
        store = JSONStore(site_root=tmp_path)
        with pytest.raises(DataLoadError) as exc_info:
            store.get_routes()
        assert exc_info.value.url == "./data/routes.json"

    def test_bad_json_raises_load_error(self, site_root):
        (site_root / "data" / "rules.json").write_text("{ not json")
        with pytest.raises(DataLoadError):
            JSONStore(site_root=site_root).get_rules()

    def test_failed_load_is_not_cached(self, site_root):
        (site_root / "data" / "rules.json").write_text("{ not json")
        store = JSONStore(site_root=site_root)
        with pytest.raises(DataLoadError):
            store.get_rules()
        (site_root / "data" / "rules.json").write_text(json.dumps(RAW_RULES))
        assert store.get_rules().ihs_rates.standard.rate_per_year == 624


class TestLoadTimeValidation:

    def test_duplicate_route_ids_rejected(self, tmp_path):
        write_site(tmp_path, routes=RAW_ROUTES + [RAW_ROUTES[0]])
        with pytest.raises(DataValidationError) as exc_info:
            JSONStore(site_root=tmp_path).get_routes()
        assert any("Duplicate route_ids found: skilled-worker" in i for i in exc_info.value.issues)

    def test_dangling_fee_key_rejected(self, tmp_path):
        fees = {k: v for k, v in RAW_FEES.items() if k != "naturalisation"}
        write_site(tmp_path, fees=fees)
        with pytest.raises(DataValidationError) as exc_info:
            JSONStore(site_root=tmp_path).get_tables()
        assert 'Route "british-citizenship" references missing fee "naturalisation"' in exc_info.value.issues

    def test_missing_required_field_rejected(self, tmp_path):
        routes = [dict(RAW_ROUTES[0])]
        del routes[0]["ihs_policy"]
        write_site(tmp_path, routes=routes)
        with pytest.raises(DataValidationError) as exc_info:
            JSONStore(site_root=tmp_path).get_tables()
        assert 'Route "skilled-worker" missing required field: ihs_policy' in exc_info.value.issues

    def test_unhashable_fee_key_rejected(self, tmp_path):
        write_site(tmp_path, routes=[dict(RAW_ROUTES[0], fee_items=[{"k": 1}])])
        with pytest.raises(DataValidationError) as exc_info:
            JSONStore(site_root=tmp_path).get_tables()
        assert "Route \"skilled-worker\" has a non-string fee key: {'k': 1}" in exc_info.value.issues

    def test_unhashable_route_id_rejected(self, tmp_path):
        write_site(tmp_path, routes=[dict(RAW_ROUTES[0], route_id=["skilled-worker"])])
        with pytest.raises(DataValidationError) as exc_info:
            JSONStore(site_root=tmp_path).get_tables()
        assert "Route at index 0 has an invalid route_id: ['skilled-worker']" in exc_info.value.issues

    def test_fee_without_any_amount_rejected(self, tmp_path):
        fees = dict(RAW_FEES, priority={"name": "Priority", "amount_inside_uk": None, "amount_outside_uk": None})
        write_site(tmp_path, fees=fees)
        with pytest.raises(DataValidationError):
            JSONStore(site_root=tmp_path).get_tables()

    def test_fixed_policy_needs_options(self, tmp_path):
        routes = [dict(RAW_ROUTES[0], duration_options=[])]
        write_site(tmp_path, routes=routes)
        with pytest.raises(DataValidationError):
            JSONStore(site_root=tmp_path).get_tables()


class TestAccessors:

    def test_typed_routes(self, site_root):
        routes = JSONStore(site_root=site_root).get_routes()
        assert all(isinstance(r, Route) for r in routes)

    def test_route_by_id(self, site_root):
        store = JSONStore(site_root=site_root)
        assert store.get_route_by_id("student").ihs_policy == "required_student"
        assert store.get_route_by_id("missing") is None

    def test_routes_by_category_and_indexable(self, site_root):
        store = JSONStore(site_root=site_root)
        assert [r.route_id for r in store.get_routes_by_category("work")] == [
            "skilled-worker", "health-and-care-worker",
        ]
        assert "health-and-care-worker" not in [r.route_id for r in store.get_indexable_routes()]

    def test_categories_in_table_order(self, site_root):
        assert JSONStore(site_root=site_root).get_categories() == [
            "work", "study", "visit", "settlement", "citizenship",
        ]

    def test_site_config_and_content(self, site_root):
        store = JSONStore(site_root=site_root)
        assert store.get_site_config().site_name == "Test Visa Calculator"
        assert store.get_route_content("student") == {"intro": "About student"}
        with pytest.raises(DataLoadError):
            store.get_route_content("health-and-care-worker")

    def test_life_in_uk_test_defaults_from_identifier(self, site_root):
        store = JSONStore(site_root=site_root)
        assert store.get_route_by_id("indefinite-leave-to-remain").requires_life_in_uk_test
        assert store.get_route_by_id("british-citizenship").requires_life_in_uk_test
        assert not store.get_route_by_id("skilled-worker").requires_life_in_uk_test


class TestCoreTablesAsync:

    def test_load_core_tables_populates_cache(self, site_root):
        store = JSONStore(site_root=site_root)
        tables = asyncio.run(store.load_core_tables())
        assert len(tables.routes) == len(RAW_ROUTES)
        assert len(store.cache) == 3
        assert store.get_tables() is tables

    def test_calculator_from_store_async(self, site_root):
        calc = asyncio.run(CostCalculator.from_store_async(JSONStore(site_root=site_root)))
        assert calc.find_route("student").name == "Student visa"

    def test_load_failure_leaves_calculator_uninitialised(self, tmp_path):
        with pytest.raises(DataLoadError):
            asyncio.run(CostCalculator.from_store_async(JSONStore(site_root=tmp_path)))
