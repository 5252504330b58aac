import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from spotfinder.services.carparks.api import router as carparks_router
from spotfinder.services.container import open_services
from spotfinder.services.errors import NotFoundError, QueryValidationError, StoreError
from spotfinder.services.settings.app_settings import AppSettings


logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(levelname)s:%(name)s:%(message)s")


def _validation_message(errors) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(p) for p in err.get("loc", ()) if p not in ("query", "body"))
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "Invalid request parameters" + (f" ({'; '.join(parts)})" if parts else "")


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"success": False, "message": _validation_message(exc.errors())})

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"success": False, "message": _validation_message(exc.errors())})

    @app.exception_handler(QueryValidationError)
    async def query_validation_handler(request: Request, exc: QueryValidationError):
        return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"success": False, "message": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.__cause__ or exc)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": str(exc),
                "error": str(exc.__cause__ or exc) if debug else "Internal server error",
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal server error",
                "error": str(exc) if debug else "Internal server error",
            },
        )


def create_app(settings: Optional[AppSettings] = None, **service_overrides) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (default: read from the environment)
        service_overrides: Passed to open_services (e.g. cache=, feed_transport=)
    """
    settings = settings or AppSettings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s", settings.app_title)
        app.state.services = await open_services(settings, **service_overrides)
        yield
        await app.state.services.close()
        logger.info("Shutting down %s", settings.app_title)

    app = FastAPI(title=settings.app_title, version=settings.app_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, debug=settings.debug)

    @app.get("/")
    async def root():
        return {"message": "SpotFinder Carpark API is running"}

    @app.get("/health")
    async def health_check(request: Request):
        cache_ok = await request.app.state.services.cache.ping()
        return {"status": "healthy", "cache": "healthy" if cache_ok else "unavailable"}

    app.include_router(carparks_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
