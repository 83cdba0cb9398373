import re
from datetime import date, datetime
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from periods import MAX_USER_ID, utcnow
from schemas import UserIn
from services import InvalidInput, StorageUnavailable, UserService
from web import api_error, create_app, error_from_exception, get_db

app = create_app("users", title="Users Service")

REQUIRED_USER_FIELDS = ("id", "first_name", "last_name", "birthday")
USER_ID_PATH = re.compile(r"[0-9]+")


def _parse_birthday(value: Any) -> date:
    if not isinstance(value, str):
        raise InvalidInput("birthday must be a valid Date", error_id=4)
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError as exc:
        raise InvalidInput("birthday must be a valid Date", error_id=4) from exc


def user_payload_from_body(body: Any) -> UserIn:
    if not isinstance(body, dict) or any(
        body.get(field) is None for field in REQUIRED_USER_FIELDS
    ):
        raise InvalidInput(
            "Missing required fields: id, first_name, last_name, birthday", error_id=1
        )
    user_id = body["id"]
    if (
        isinstance(user_id, bool)
        or not isinstance(user_id, int)
        or not 0 <= user_id <= MAX_USER_ID
    ):
        raise InvalidInput(
            f"id must be an integer between 0 and {MAX_USER_ID}", error_id=2
        )
    first_name = body["first_name"]
    last_name = body["last_name"]
    if not isinstance(first_name, str) or not isinstance(last_name, str):
        raise InvalidInput("first_name and last_name must be Strings", error_id=3)
    if len(first_name) > 100 or len(last_name) > 100:
        raise InvalidInput(
            "first_name and last_name must be at most 100 characters", error_id=3
        )
    return UserIn(
        id=user_id,
        first_name=first_name,
        last_name=last_name,
        birthday=_parse_birthday(body["birthday"]),
    )


def user_to_dict(user) -> dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "birthday": user.birthday.isoformat(),
    }


@app.post("/api/add")
async def add_user(request: Request, db: Session = Depends(get_db)):
    try:
        body = await request.json()
    except ValueError as exc:
        raise api_error(1, "Request body must be a JSON object") from exc
    try:
        user = UserService(db).create(user_payload_from_body(body))
    except (InvalidInput, StorageUnavailable) as exc:
        raise error_from_exception(exc) from exc
    return user_to_dict(user)


@app.get("/api/users")
def list_users(db: Session = Depends(get_db)):
    try:
        users = UserService(db).list_all()
    except StorageUnavailable as exc:
        raise error_from_exception(exc) from exc
    return [user_to_dict(user) for user in users]


@app.get("/api/users/{user_id}")
def user_details(user_id: str, request: Request, db: Session = Depends(get_db)):
    if not USER_ID_PATH.fullmatch(user_id):
        raise api_error(6, "User id in URL must be an integer")
    try:
        parsed_id = int(user_id)
    except ValueError as exc:
        raise api_error(6, "User id in URL is too long") from exc
    if parsed_id > MAX_USER_ID:
        raise api_error(6, f"User id in URL must be at most {MAX_USER_ID}")
    request.app.state.request_sink(
        {
            "ts": utcnow().isoformat(),
            "service": request.app.state.service_name,
            "type": "endpoint",
            "method": "GET",
            "path": "/api/users/:id",
            "message": "endpoint accessed",
            "meta": {"id": parsed_id},
        }
    )
    try:
        return UserService(db).summary(parsed_id)
    except (InvalidInput, StorageUnavailable) as exc:
        raise error_from_exception(exc) from exc
