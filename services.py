from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from models import CachedReport, Cost, LogEntry, User
from periods import (
    MAX_USER_ID,
    MAX_YEAR,
    MIN_YEAR,
    ReportPeriod,
    current_date,
    to_utc_naive,
    utcnow,
)
from reports import CostRecord, Report, build_report
from schemas import CostIn, LogIn, UserIn

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


class InvalidInput(ValueError):
    def __init__(self, message: str, error_id: int = 0) -> None:
        super().__init__(message)
        self.error_id = error_id


class NotFound(InvalidInput):
    pass


class StorageUnavailable(RuntimeError):
    pass


class CacheStoreResult(str, Enum):
    stored = "stored"
    conflict = "conflict"


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"storage_unavailable: operation={operation} error={exc}")
        raise StorageUnavailable(f"Storage unavailable during {operation}") from exc


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_report_key(user_id: Any, year: Any, month: Any) -> ReportPeriod:
    for name, value in (("id", user_id), ("year", year), ("month", month)):
        if not _is_int(value):
            raise InvalidInput(f"{name} must be an integer", error_id=20)
    if not 1 <= month <= 12:
        raise InvalidInput("month must be between 1 and 12", error_id=21)
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidInput(
            f"year must be between {MIN_YEAR} and {MAX_YEAR}", error_id=22
        )
    if not 0 <= user_id <= MAX_USER_ID:
        raise InvalidInput(
            f"id must be between 0 and {MAX_USER_ID}", error_id=22
        )
    return ReportPeriod(year, month)


class UserService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, data: UserIn) -> User:
        with storage_guard("user create"):
            if self.session.get(User, data.id) is not None:
                raise InvalidInput("User with this id already exists", error_id=5)
            user = User(
                id=data.id,
                first_name=data.first_name,
                last_name=data.last_name,
                birthday=data.birthday,
            )
            self.session.add(user)
            try:
                self.session.commit()
            except IntegrityError as exc:
                self.session.rollback()
                raise InvalidInput(
                    "User with this id already exists", error_id=5
                ) from exc
            self.session.refresh(user)
        logger.info(f"user_created: id={user.id}")
        return user

    def exists(self, user_id: int) -> bool:
        with storage_guard("user lookup"):
            return self.session.get(User, user_id) is not None

    def list_all(self) -> list[User]:
        with storage_guard("user list"):
            return list(self.session.scalars(select(User).order_by(User.id)).all())

    def total_costs(self, user_id: int) -> Decimal:
        with storage_guard("user total"):
            total = self.session.execute(
                select(func.sum(Cost.amount)).where(Cost.user_id == user_id)
            ).scalar_one()
        if total is None:
            return Decimal("0")
        return Decimal(str(total))

    def summary(self, user_id: int) -> dict[str, Any]:
        with storage_guard("user lookup"):
            user = self.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found", error_id=7)
        return {
            "first_name": user.first_name,
            "last_name": user.last_name,
            "id": user.id,
            "total": self.total_costs(user.id),
        }


class CostService:
    """Cost record store: accepts new costs and answers range queries."""

    def __init__(self, session: Session, settings: Optional[Settings] = None) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.tz = ZoneInfo(self.settings.timezone)

    def create(self, data: CostIn, *, now: Optional[datetime] = None) -> CostRecord:
        now_utc = to_utc_naive(now, UTC) if now else utcnow()
        created_at = (
            to_utc_naive(data.created_at, self.tz) if data.created_at else now_utc
        )
        if created_at < now_utc:
            raise InvalidInput("Cannot add costs with dates in the past", error_id=7)
        if not UserService(self.session).exists(data.user_id):
            raise InvalidInput("User not found", error_id=8)

        cost = Cost(
            user_id=data.user_id,
            description=data.description,
            category=data.category.value,
            amount=data.amount,
            created_at=created_at,
        )
        with storage_guard("cost create"):
            self.session.add(cost)
            self.session.commit()
        logger.info(
            f"cost_created: user_id={cost.user_id} category={cost.category} "
            f"amount={cost.amount}"
        )
        return CostRecord(
            description=cost.description,
            category=cost.category,
            user_id=cost.user_id,
            amount=data.amount,
            created_at=cost.created_at,
        )

    def find(self, user_id: int, start: datetime, end: datetime) -> list[CostRecord]:
        """Costs of ``user_id`` with ``start <= created_at < end`` (naive UTC)."""
        stmt = (
            select(
                Cost.description,
                Cost.category,
                Cost.user_id,
                Cost.amount,
                Cost.created_at,
            )
            .where(
                Cost.user_id == user_id,
                Cost.created_at >= start,
                Cost.created_at < end,
            )
            .order_by(Cost.created_at, Cost.id)
        )
        with storage_guard("cost range query"):
            rows = self.session.execute(stmt).all()
        return [
            CostRecord(
                description=row.description,
                category=row.category,
                user_id=row.user_id,
                amount=Decimal(str(row.amount)),
                created_at=row.created_at,
            )
            for row in rows
        ]


class ReportCache:
    """Permanent store of reports for closed months, one per (user, year, month)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def lookup(self, user_id: int, year: int, month: int) -> Optional[Report]:
        stmt = select(CachedReport.report).where(
            CachedReport.user_id == user_id,
            CachedReport.year == year,
            CachedReport.month == month,
        )
        with storage_guard("report cache lookup"):
            document = self.session.scalar(stmt)
        if not document:
            return None
        return Report.from_document(document)

    def store(
        self, user_id: int, year: int, month: int, report: Report
    ) -> CacheStoreResult:
        row = CachedReport(
            user_id=user_id,
            year=year,
            month=month,
            report=report.to_document(),
            computed_at=utcnow(),
        )
        with storage_guard("report cache store"):
            self.session.add(row)
            try:
                self.session.commit()
            except IntegrityError:
                # Another request cached this month first; its copy wins.
                self.session.rollback()
                logger.debug(
                    f"report_cache_conflict: user_id={user_id} year={year} "
                    f"month={month}"
                )
                return CacheStoreResult.conflict
        return CacheStoreResult.stored


class ReportService:
    def __init__(
        self,
        session: Session,
        costs: Optional[CostService] = None,
        cache: Optional[ReportCache] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.tz = ZoneInfo(self.settings.timezone)
        self.costs = costs or CostService(session, self.settings)
        self.cache = cache or ReportCache(session)

    def get_report(
        self, user_id: int, year: int, month: int, *, now: Optional[datetime] = None
    ) -> Report:
        period = validate_report_key(user_id, year, month)
        closed = period.is_closed(current_date(self.tz, now))

        if closed:
            cached = self.cache.lookup(user_id, year, month)
            if cached is not None:
                logger.info(
                    f"report: user_id={user_id} period={year}-{month:02d} source=cache"
                )
                return cached

        start, end = period.utc_bounds(self.tz)
        records = self.costs.find(user_id, start, end)
        report = build_report(user_id, year, month, records, tz=self.tz)

        if closed:
            result = self.cache.store(user_id, year, month, report)
            logger.info(
                f"report: user_id={user_id} period={year}-{month:02d} "
                f"source=computed cache={result.value}"
            )
        else:
            logger.info(
                f"report: user_id={user_id} period={year}-{month:02d} "
                f"source=computed cache=skipped_open_period"
            )
        return report


class LogService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, data: LogIn) -> LogEntry:
        entry = LogEntry(
            ts=to_utc_naive(data.ts, UTC) if data.ts else utcnow(),
            service=data.service,
            type=data.type,
            method=data.method,
            path=data.path,
            status_code=data.status_code,
            response_time_ms=data.response_time_ms,
            message=data.message,
            meta=data.meta,
        )
        with storage_guard("log create"):
            self.session.add(entry)
            self.session.commit()
        return entry

    def list_all(self) -> list[LogEntry]:
        stmt = select(LogEntry).order_by(LogEntry.ts.desc(), LogEntry.id.desc())
        with storage_guard("log list"):
            return list(self.session.scalars(stmt).all())


def log_entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "ts": entry.ts.isoformat(),
        "service": entry.service,
        "type": entry.type,
        "method": entry.method,
        "path": entry.path,
        "statusCode": entry.status_code,
        "responseTimeMs": entry.response_time_ms,
        "message": entry.message,
        "meta": entry.meta,
    }
    return {key: value for key, value in data.items() if value is not None}
