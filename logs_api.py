import logging
from typing import Any

from fastapi import Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from database import session_scope
from schemas import LogIn
from services import LogService, StorageUnavailable, log_entry_to_dict
from web import api_error, create_app, error_from_exception, get_db

logger = logging.getLogger(__name__)


def store_request_log(doc: dict[str, Any]) -> bool:
    """Record this service's own requests straight into the log store.

    A failed write is logged and reported as ``False``; the request it
    describes has already been answered.
    """
    try:
        with session_scope(app.state.session_factory) as session:
            LogService(session).create(LogIn.model_validate(doc))
    except StorageUnavailable as exc:
        logger.warning(f"request_log_not_stored: path={doc.get('path')} error={exc}")
        return False
    return True


app = create_app("logs", title="Logs Service", request_sink=store_request_log)


@app.post("/api/logs")
async def add_log(request: Request, db: Session = Depends(get_db)):
    try:
        body = await request.json()
        data = LogIn.model_validate(body)
    except (ValueError, ValidationError) as exc:
        raise api_error(1, f"Invalid log document: {exc}") from exc
    try:
        LogService(db).create(data)
    except StorageUnavailable as exc:
        raise error_from_exception(exc) from exc
    return {"ok": True}


@app.get("/api/logs")
def list_logs(db: Session = Depends(get_db)):
    try:
        entries = LogService(db).list_all()
    except StorageUnavailable as exc:
        raise error_from_exception(exc) from exc
    return [log_entry_to_dict(entry) for entry in entries]
