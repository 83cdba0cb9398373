import logging
import time
from typing import Any, Callable, Iterator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import SessionLocal
from log_shipping import LogShipper
from periods import utcnow
from services import InvalidInput, NotFound, StorageUnavailable

logger = logging.getLogger(__name__)

RequestSink = Callable[[dict[str, Any]], object]


def api_error(error_id: int, message: str, status_code: int = 400) -> HTTPException:
    return HTTPException(
        status_code=status_code, detail={"id": error_id, "message": message}
    )


def error_from_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFound):
        return api_error(exc.error_id, str(exc), 404)
    if isinstance(exc, InvalidInput):
        return api_error(exc.error_id, str(exc), 400)
    if isinstance(exc, StorageUnavailable):
        return api_error(999, str(exc), 500)
    return api_error(999, str(exc) or "Unknown error", 500)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


async def _http_error_envelope(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if not isinstance(detail, dict):
        detail = {"id": exc.status_code, "message": str(detail)}
    return JSONResponse(
        status_code=exc.status_code, content=detail, headers=exc.headers
    )


async def _unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500, content={"id": 999, "message": str(exc) or "Unknown error"}
    )


def create_app(
    service_name: str,
    *,
    title: str,
    request_sink: Optional[RequestSink] = None,
    session_factory: sessionmaker = SessionLocal,
) -> FastAPI:
    """Build a service app with the shared health route, error envelope and
    request logging.

    Every finished request is described by a log document handed to
    ``request_sink``; by default it goes to the logs service via ``LogShipper``.
    """
    app = FastAPI(title=title)
    shipper = LogShipper()
    app.state.service_name = service_name
    app.state.session_factory = session_factory
    app.state.log_shipper = shipper
    app.state.request_sink = request_sink or shipper.submit

    app.add_exception_handler(StarletteHTTPException, _http_error_envelope)
    app.add_exception_handler(Exception, _unhandled_error)

    async def ship(request: Request, status_code: int, start: float) -> None:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 3)
        logger.info(
            f"request: service={service_name} method={request.method} "
            f"path={request.url.path} status={status_code} ms={elapsed_ms}"
        )
        doc = {
            "ts": utcnow().isoformat(),
            "service": service_name,
            "type": "request",
            "method": request.method,
            "path": request.url.path,
            "statusCode": status_code,
            "responseTimeMs": elapsed_ms,
            "message": "request completed" if status_code < 500 else "request failed",
        }
        await run_in_threadpool(request.app.state.request_sink, doc)

    @app.middleware("http")
    async def record_request(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # the outer error handler turns this into the 500 envelope
            await ship(request, 500, start)
            raise
        await ship(request, response.status_code, start)
        return response

    @app.on_event("startup")
    def startup_event():
        logging.basicConfig(level=logging.INFO)
        shipper.start()

    @app.on_event("shutdown")
    def shutdown_event():
        shipper.stop()

    @app.get("/health")
    def health():
        return {"service": service_name, "status": "ok"}

    return app
