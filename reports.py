from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

from models import REPORT_CATEGORY_ORDER
from periods import local_day

UTC = ZoneInfo("UTC")


@dataclass(frozen=True)
class CostRecord:
    description: str
    category: str
    user_id: int
    amount: Decimal
    created_at: datetime  # naive UTC


@dataclass(frozen=True)
class ReportEntry:
    amount: Decimal
    description: str
    day: int


@dataclass(frozen=True)
class Report:
    """Monthly costs of one user, bucketed by category.

    ``costs`` always holds one ``(category, entries)`` pair per category, in
    ``REPORT_CATEGORY_ORDER``.
    """

    user_id: int
    year: int
    month: int
    costs: tuple[tuple[str, tuple[ReportEntry, ...]], ...]

    def entries(self, category: str) -> tuple[ReportEntry, ...]:
        for name, entries in self.costs:
            if name == category:
                return entries
        raise KeyError(category)

    def total(self) -> Decimal:
        return sum(
            (entry.amount for _, entries in self.costs for entry in entries),
            Decimal("0"),
        )

    def to_response(self) -> dict[str, Any]:
        return {
            "userid": self.user_id,
            "year": self.year,
            "month": self.month,
            "costs": [
                {
                    name: [
                        {
                            "sum": entry.amount,
                            "description": entry.description,
                            "day": entry.day,
                        }
                        for entry in entries
                    ]
                }
                for name, entries in self.costs
            ],
        }

    def to_document(self) -> dict[str, Any]:
        # Amounts go to JSON as strings so the cached copy keeps exact decimals.
        doc = self.to_response()
        for bucket in doc["costs"]:
            for items in bucket.values():
                for item in items:
                    item["sum"] = str(item["sum"])
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Report:
        buckets: dict[str, list[dict[str, Any]]] = {}
        for bucket in doc.get("costs", []):
            buckets.update(bucket)
        costs = tuple(
            (
                category.value,
                tuple(
                    ReportEntry(
                        amount=Decimal(str(item["sum"])),
                        description=item["description"],
                        day=int(item["day"]),
                    )
                    for item in buckets.get(category.value, [])
                ),
            )
            for category in REPORT_CATEGORY_ORDER
        )
        return cls(
            user_id=int(doc["userid"]),
            year=int(doc["year"]),
            month=int(doc["month"]),
            costs=costs,
        )


def build_report(
    user_id: int,
    year: int,
    month: int,
    records: Iterable[CostRecord],
    tz: Optional[ZoneInfo] = None,
) -> Report:
    tz = tz or UTC
    grouped: dict[str, list[ReportEntry]] = {
        category.value: [] for category in REPORT_CATEGORY_ORDER
    }
    for record in records:
        bucket = grouped.get(record.category)
        if bucket is None:
            continue
        bucket.append(
            ReportEntry(
                amount=record.amount,
                description=record.description,
                day=local_day(record.created_at, tz),
            )
        )
    return Report(
        user_id=user_id,
        year=year,
        month=month,
        costs=tuple((name, tuple(entries)) for name, entries in grouped.items()),
    )
