from datetime import date, datetime
from decimal import Decimal

import pytest

from models import Cost
from schemas import UserIn
from services import InvalidInput, NotFound, UserService
from users_api import user_payload_from_body


def test_summary_totals_all_costs_of_the_user(session) -> None:
    users = UserService(session)
    users.create(
        UserIn(
            id=123123, first_name="Maya", last_name="Katz", birthday=date(1992, 7, 9)
        )
    )
    session.add_all(
        [
            Cost(
                user_id=123123,
                description="a",
                category="food",
                amount=Decimal("0.10"),
                created_at=datetime(2025, 1, 1),
            ),
            Cost(
                user_id=123123,
                description="b",
                category="sports",
                amount=Decimal("0.20"),
                created_at=datetime(2025, 2, 1),
            ),
            Cost(
                user_id=1,
                description="c",
                category="sports",
                amount=Decimal("50"),
                created_at=datetime(2025, 2, 1),
            ),
        ]
    )
    session.commit()

    summary = users.summary(123123)

    assert summary == {
        "first_name": "Maya",
        "last_name": "Katz",
        "id": 123123,
        "total": Decimal("0.30"),
    }


def test_summary_without_costs_is_zero(session) -> None:
    users = UserService(session)
    users.create(UserIn(id=5, first_name="A", last_name="B", birthday=date(2000, 1, 1)))

    assert users.summary(5)["total"] == Decimal("0")


def test_duplicate_user_id_is_rejected(session) -> None:
    users = UserService(session)
    data = UserIn(id=5, first_name="A", last_name="B", birthday=date(2000, 1, 1))
    users.create(data)

    with pytest.raises(InvalidInput) as excinfo:
        users.create(data)
    assert excinfo.value.error_id == 5
    assert [u.id for u in users.list_all()] == [5]


def test_unknown_user_summary_is_not_found(session) -> None:
    with pytest.raises(NotFound) as excinfo:
        UserService(session).summary(404)
    assert excinfo.value.error_id == 7


@pytest.mark.parametrize(
    "body, error_id",
    [
        ({"id": 1, "first_name": "A"}, 1),
        ({"id": "1", "first_name": "A", "last_name": "B", "birthday": "2000-01-01"}, 2),
        (
            {
                "id": 2**63,
                "first_name": "A",
                "last_name": "B",
                "birthday": "2000-01-01",
            },
            2,
        ),
        ({"id": 1, "first_name": 1, "last_name": "B", "birthday": "2000-01-01"}, 3),
        ({"id": 1, "first_name": "A", "last_name": "B", "birthday": "31/12/2000"}, 4),
    ],
)
def test_user_payload_validation_error_ids(body, error_id) -> None:
    with pytest.raises(InvalidInput) as excinfo:
        user_payload_from_body(body)
    assert excinfo.value.error_id == error_id


def test_user_payload_accepts_full_timestamps_for_birthday() -> None:
    data = user_payload_from_body(
        {
            "id": 9,
            "first_name": "A",
            "last_name": "B",
            "birthday": "1999-05-06T00:00:00.000Z",
        }
    )

    assert data.birthday == date(1999, 5, 6)
