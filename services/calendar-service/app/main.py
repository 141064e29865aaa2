import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from shared.rabbitmq import RabbitPublisher

from . import config
from .db import Base, get_engine, get_session
from .directory import DirectoryClient
from .errors import CalendarError
from .middleware import RequestLoggingMiddleware
from .routes import router

logger = logging.getLogger(__name__)

# path/body prefixes FastAPI puts in front of every error location
_LOC_NOISE = {"body", "query", "path"}


def configure_logging(level: str = config.LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def format_validation_error(err: dict) -> str:
    loc = [str(p) for p in err.get("loc", ()) if p not in _LOC_NOISE]
    field = ".".join(loc) or "request"
    return f"{field} {err.get('msg', 'is invalid')}"


def create_app(
    database_url: str | None = None,
    create_schema: bool = config.CREATE_SCHEMA,
    rabbit_url: str | None = config.RABBIT_URL,
    directory: DirectoryClient | None = None,
) -> FastAPI:
    db_url = database_url or config.DATABASE_URL

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = get_engine(db_url, echo=config.DATABASE_ECHO)
        app.state.engine = engine
        app.state.session_factory = get_session(engine)

        if create_schema:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        # never crash the service if RabbitMQ is temporarily unavailable
        try:
            await app.state.publisher.connect()
        except Exception as e:
            logger.warning("[calendar-service] RabbitMQ connect failed at startup; continuing without events: %s", e)

        logger.info("[calendar-service] started (events_enabled=%s)", app.state.publisher.enabled)
        yield

        await app.state.publisher.close()
        await engine.dispose()
        logger.info("[calendar-service] stopped")

    app = FastAPI(title="Calendar Service", lifespan=lifespan)
    app.state.publisher = RabbitPublisher(rabbit_url, config.EXCHANGE_NAME, source=config.SERVICE_NAME)
    app.state.directory = directory or DirectoryClient(
        config.USER_SERVICE_URL,
        config.PET_SERVICE_URL,
        timeout=config.DIRECTORY_TIMEOUT,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(router)

    @app.exception_handler(CalendarError)
    async def calendar_error_handler(request: Request, exc: CalendarError):
        if exc.status_code >= 500:
            logger.error("[calendar-service] %s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.messages},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": [format_validation_error(e) for e in exc.errors()]},
        )

    @app.get("/health", tags=["System"])
    async def health():
        return {
            "status": "ok",
            "service": config.SERVICE_NAME,
            "events_enabled": app.state.publisher.enabled,
        }

    return app


configure_logging()
app = create_app()
