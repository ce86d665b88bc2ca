"""
api/app.py
FastAPI application entry point.
Run with:  uvicorn api.app:app --port 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorResponse
from config.settings import settings
from knowledge_base.errors import DataLoadError, DataValidationError
from monitoring import get_logger

log = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    from api.routes import get_store
    store = app.dependency_overrides.get(get_store, get_store)()
    try:
        tables = await store.load_core_tables()
        log.info("Visa data preloaded", routes=len(tables.routes), fees=len(tables.fees))
    except (DataLoadError, DataValidationError) as exc:
        # Requests will retry the load and report 503 until the data is fixed
        log.error("Visa data could not be loaded", error=str(exc))
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description=(
            "Estimates UK visa application costs: application fee, Immigration Health "
            "Surcharge, optional priority services, citizenship ceremony and the "
            "Life in the UK test, from static route and fee tables."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DataLoadError)
    async def _data_load_handler(request: Request, exc: DataLoadError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(error="Visa data unavailable", detail=str(exc)).model_dump(),
        )

    @app.exception_handler(DataValidationError)
    async def _data_invalid_handler(request: Request, exc: DataValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(error="Visa data invalid", errors=exc.issues).model_dump(),
        )

    @app.exception_handler(Exception)
    async def _global_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error("Unhandled error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error", detail=str(exc)).model_dump(),
        )

    from api.routes import router
    app.include_router(router, prefix="/api/v1", tags=["Visa Costs"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.app:app", host=settings.api_host, port=settings.api_port, log_level="info")
