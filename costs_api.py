import math
import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from models import is_valid_category
from periods import MAX_USER_ID
from schemas import CostIn
from services import CostService, InvalidInput, ReportService, StorageUnavailable
from web import api_error, create_app, error_from_exception, get_db

app = create_app("costs", title="Costs Service")

REQUIRED_COST_FIELDS = ("description", "category", "userid", "sum")
MAX_AMOUNT = Decimal("10000000000")
INT_PARAM = re.compile(r"-?[0-9]+")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def cost_payload_from_body(body: Any) -> CostIn:
    if not isinstance(body, dict) or any(
        body.get(field) is None for field in REQUIRED_COST_FIELDS
    ):
        raise InvalidInput(
            "Missing required fields: description, category, userid, sum", error_id=1
        )
    if not isinstance(body["description"], str):
        raise InvalidInput("description must be a String", error_id=2)
    if not is_valid_category(body["category"]):
        raise InvalidInput(
            "category must be one of: food, health, housing, sports, education",
            error_id=3,
        )
    userid = body["userid"]
    if (
        isinstance(userid, bool)
        or not isinstance(userid, int)
        or not 0 <= userid <= MAX_USER_ID
    ):
        raise InvalidInput(
            f"userid must be an integer between 0 and {MAX_USER_ID}", error_id=4
        )
    if not _is_number(body["sum"]):
        raise InvalidInput("sum must be a Number", error_id=5)
    amount = Decimal(str(body["sum"])).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if amount < 0 or amount >= MAX_AMOUNT:
        raise InvalidInput(
            f"sum must be between 0 and {MAX_AMOUNT}", error_id=5
        )

    created_at: Optional[datetime] = None
    raw_created_at = body.get("createdAt")
    if raw_created_at is not None:
        if not isinstance(raw_created_at, str):
            raise InvalidInput("createdAt must be a valid Date if provided", error_id=6)
        try:
            created_at = datetime.fromisoformat(raw_created_at)
        except ValueError as exc:
            raise InvalidInput(
                "createdAt must be a valid Date if provided", error_id=6
            ) from exc

    return CostIn(
        description=body["description"],
        category=body["category"],
        user_id=userid,
        amount=amount,
        created_at=created_at,
    )


def parse_int_param(value: Optional[str]) -> int:
    text = (value or "").strip()
    if not INT_PARAM.fullmatch(text):
        raise InvalidInput(
            "Query params must be integers: id, year, month", error_id=20
        )
    try:
        return int(text)
    except ValueError as exc:
        # past the interpreter's digit limit
        raise InvalidInput("Query param out of range", error_id=22) from exc


@app.post("/api/add")
async def add_cost(request: Request, db: Session = Depends(get_db)):
    try:
        body = await request.json()
    except ValueError as exc:
        raise api_error(1, "Request body must be a JSON object") from exc
    try:
        data = cost_payload_from_body(body)
        record = CostService(db).create(data)
    except (InvalidInput, StorageUnavailable) as exc:
        raise error_from_exception(exc) from exc
    return {
        "description": record.description,
        "category": record.category,
        "userid": record.user_id,
        "sum": record.amount,
        "createdAt": record.created_at.replace(tzinfo=timezone.utc).isoformat(),
    }


@app.get("/api/report")
def get_report(request: Request, db: Session = Depends(get_db)):
    params = request.query_params
    try:
        user_id = parse_int_param(params.get("id"))
        year = parse_int_param(params.get("year"))
        month = parse_int_param(params.get("month"))
        report = ReportService(db).get_report(user_id, year, month)
    except (InvalidInput, StorageUnavailable) as exc:
        raise error_from_exception(exc) from exc
    return report.to_response()
