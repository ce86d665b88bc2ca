"""
api/routes.py
REST endpoints.

Store accessors and template rendering can read files from disk, so
endpoints hand them to the threadpool instead of calling them on the loop.
"""
import time
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse

from api.models import (
    CalculationRequest,
    CalculationResponse,
    ErrorResponse,
    LineItemOut,
    RouteDetail,
    RouteSummary,
)
from calculation_engine.calculator import CalculationResult, CostCalculator
from guardrails.form_validator import FormValidator
from knowledge_base.errors import DataLoadError
from knowledge_base.json_store import JSONStore
from knowledge_base.models import Route
from monitoring import get_logger
from presentation.renderer import (
    build_form,
    format_currency,
    render_errors_html,
    render_form_html,
    render_result_html,
)

log = get_logger(__name__)

router = APIRouter(
    responses={
        503: {"model": ErrorResponse, "description": "Visa data missing or invalid"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)

_store     = JSONStore()
_validator = FormValidator()


def get_store() -> JSONStore:
    return _store


def get_calculator(store: JSONStore = Depends(get_store)) -> CostCalculator:
    return CostCalculator.from_store(store)


def _route_or_404(calculator: CostCalculator, route_id: str) -> Route:
    route = next((r for r in calculator.routes if r.route_id == route_id), None)
    if route is None:
        raise HTTPException(status_code=404, detail=f"Route not found: {route_id}")
    return route


def _run_calculation(request: CalculationRequest, calculator: CostCalculator) -> tuple[Route, CalculationResult]:
    route = _route_or_404(calculator, request.route_id)
    report = _validator.validate(route, request.form_values())
    if not report.passed:
        raise HTTPException(status_code=422, detail={"errors": report.issues})
    return route, calculator.calculate(report.params)


#GET /routes

@router.get("/routes", response_model=list[RouteSummary], summary="List visa routes")
async def list_routes(
    category: Optional[str] = None,
    indexable_only: bool = False,
    store: JSONStore = Depends(get_store),
) -> list[RouteSummary]:
    if category:
        routes = await run_in_threadpool(store.get_routes_by_category, category)
    else:
        routes = await run_in_threadpool(store.get_routes)
    if indexable_only:
        routes = [r for r in routes if r.indexable]
    return [
        RouteSummary(
            route_id=r.route_id,
            name=r.name,
            category=r.category,
            indexable=r.indexable,
            description=r.description,
            processing_time=r.processing_time,
            last_reviewed=r.last_reviewed,
        )
        for r in routes
    ]


@router.get("/categories", summary="List route categories")
async def list_categories(store: JSONStore = Depends(get_store)) -> dict:
    return {"categories": await run_in_threadpool(store.get_categories)}


#GET /routes/{route_id}

@router.get("/routes/{route_id}", response_model=RouteDetail, summary="Route details and page content")
async def get_route(route_id: str, store: JSONStore = Depends(get_store)) -> RouteDetail:
    route = await run_in_threadpool(store.get_route_by_id, route_id)
    if route is None:
        raise HTTPException(status_code=404, detail=f"Route not found: {route_id}")
    content = None
    try:
        content = await run_in_threadpool(store.get_route_content, route_id)
    except DataLoadError:
        log.info("No content for route", route_id=route_id)
    return RouteDetail(route=route.model_dump(), content=content)


@router.get("/routes/{route_id}/form", summary="Calculator form schema for a route")
async def get_form(route_id: str, calculator: CostCalculator = Depends(get_calculator)) -> dict:
    return build_form(_route_or_404(calculator, route_id)).to_dict()


@router.get("/routes/{route_id}/form.html", response_class=HTMLResponse, summary="Rendered calculator form")
async def get_form_html(route_id: str, calculator: CostCalculator = Depends(get_calculator)) -> HTMLResponse:
    route = _route_or_404(calculator, route_id)
    return HTMLResponse(await run_in_threadpool(render_form_html, route))


#POST /calculate

@router.post("/calculate", response_model=CalculationResponse, summary="Estimate visa costs")
async def calculate(
    request: CalculationRequest,
    calculator: CostCalculator = Depends(get_calculator),
) -> CalculationResponse:
    request_id = str(uuid.uuid4())[:8]
    t0 = time.perf_counter()
    log.info("Calculation request", request_id=request_id, route_id=request.route_id)

    route, result = _run_calculation(request, calculator)

    log.info(
        "Calculation served",
        request_id=request_id,
        elapsed_ms=round((time.perf_counter() - t0) * 1000, 2),
        total=result.total,
    )
    return CalculationResponse(
        success=True,
        request_id=request_id,
        route_id=route.route_id,
        route_name=route.name,
        breakdown=[
            LineItemOut(item=line.item, amount=line.amount, amount_formatted=format_currency(line.amount))
            for line in result.breakdown
        ],
        total=result.total,
        total_formatted=format_currency(result.total),
        last_reviewed=result.last_reviewed,
    )


@router.post("/calculate.html", response_class=HTMLResponse, summary="Estimate visa costs as an HTML fragment")
async def calculate_html(
    request: CalculationRequest,
    calculator: CostCalculator = Depends(get_calculator),
) -> HTMLResponse:
    try:
        _, result = _run_calculation(request, calculator)
    except HTTPException as exc:
        if exc.status_code != 422:
            raise
        html = await run_in_threadpool(render_errors_html, exc.detail["errors"])
        return HTMLResponse(html, status_code=422)
    return HTMLResponse(await run_in_threadpool(render_result_html, result))


#GET /health

@router.get("/health", summary="Health check")
async def health(store: JSONStore = Depends(get_store)) -> dict:
    tables = await run_in_threadpool(store.get_tables)
    return {
        "status": "healthy",
        "data": {
            "routes": len(tables.routes),
            "fees": len(tables.fees),
            "cached_files": len(store.cache),
        },
    }
