from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import CostCategory
from periods import MAX_USER_ID


class UserIn(BaseModel):
    id: int = Field(..., ge=0, le=MAX_USER_ID)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    birthday: date


class CostIn(BaseModel):
    description: str
    category: CostCategory
    user_id: int = Field(..., ge=0, le=MAX_USER_ID)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    created_at: Optional[datetime] = None


class LogIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ts: Optional[datetime] = None
    service: str = Field(..., min_length=1, max_length=60)
    type: str = Field(..., min_length=1, max_length=40)
    method: Optional[str] = Field(default=None, max_length=10)
    path: Optional[str] = None
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    response_time_ms: Optional[float] = Field(default=None, alias="responseTimeMs")
    message: Optional[str] = None
    meta: Optional[dict[str, Any]] = None
