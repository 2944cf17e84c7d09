import asyncio
from datetime import date
from typing import Dict

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.api.v1.bookings import service
from app.api.v1.bookings.schemas import BookingCreate
from app.auth.schemas import CurrentIdentity
from app.core.exceptions import SlotConflict, TeacherNotFound, Unauthenticated
from app.core.models import Booking, User
from app.db.session import build_session_factory

TEACHER_USER_ID = "user_teacher"
TEACHER_EMAIL = "jane.doe@ormiston.school.nz"


def _payload(seeded, **overrides) -> dict:
    body = {
        "subject": seeded["subject"].id,
        "line": 1,
        "common": "Hub A",
        "room": "Room 1",
        "date": "2025-03-03",
        "slot": 3,
        "justification": "Practical assessment",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, auth_headers: Dict[str, str], seeded) -> None:
    response = await client.post("/api/v1/bookings", json=_payload(seeded), headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Booking created successfully"
    booking = data["booking"]
    assert booking["date"] == "2025-03-03"
    assert booking["period"] == 3
    assert booking["room_id"] == seeded["rooms_a"]["Room 1"].id
    assert booking["subject_id"] == seeded["subject"].id
    assert booking["teacher_id"] == str(seeded["teacher"].id)
    assert booking["justification"] == "Practical assessment"


@pytest.mark.asyncio
async def test_create_booking_accepts_iso_timestamp(client: AsyncClient, auth_headers, seeded) -> None:
    response = await client.post(
        "/api/v1/bookings", json=_payload(seeded, date="2025-03-03T00:00:00.000Z"), headers=auth_headers
    )
    assert response.status_code == 201
    assert response.json()["booking"]["date"] == "2025-03-03"


@pytest.mark.asyncio
async def test_second_booking_for_same_slot_conflicts(client: AsyncClient, auth_headers, seeded) -> None:
    first = await client.post("/api/v1/bookings", json=_payload(seeded), headers=auth_headers)
    second = await client.post(
        "/api/v1/bookings", json=_payload(seeded, justification="Other class"), headers=auth_headers
    )
    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_same_room_name_in_other_common_is_independent(client: AsyncClient, auth_headers, seeded) -> None:
    first = await client.post("/api/v1/bookings", json=_payload(seeded), headers=auth_headers)
    second = await client.post("/api/v1/bookings", json=_payload(seeded, common="Hub B"), headers=auth_headers)
    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["booking"]["room_id"] == seeded["room_b"].id


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["subject", "room", "date", "slot"])
async def test_missing_required_field(client: AsyncClient, auth_headers, seeded, missing: str) -> None:
    body = _payload(seeded)
    del body[missing]
    response = await client.post("/api/v1/bookings", json=body, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields"


@pytest.mark.asyncio
async def test_non_numeric_slot_is_bad_request(client: AsyncClient, auth_headers, seeded) -> None:
    response = await client.post("/api/v1/bookings", json=_payload(seeded, slot="third"), headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invalid_date_is_bad_request(client: AsyncClient, auth_headers, seeded) -> None:
    response = await client.post("/api/v1/bookings", json=_payload(seeded, date="03/03/2025"), headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_room_outside_common_is_not_found(client: AsyncClient, auth_headers, seeded) -> None:
    response = await client.post(
        "/api/v1/bookings", json=_payload(seeded, common="Hub B", room="Room 10"), headers=auth_headers
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Room not found"


@pytest.mark.asyncio
async def test_unknown_common_is_not_found(client: AsyncClient, auth_headers, seeded) -> None:
    response = await client.post("/api/v1/bookings", json=_payload(seeded, common="Hub Z"), headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Common not found"


@pytest.mark.asyncio
async def test_unknown_subject_is_not_found(client: AsyncClient, auth_headers, seeded) -> None:
    response = await client.post("/api/v1/bookings", json=_payload(seeded, subject=9999), headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Subject not found"


@pytest.mark.asyncio
async def test_caller_without_teacher_row_is_not_found(client: AsyncClient, make_token, seeded) -> None:
    headers = {"Authorization": f"Bearer {make_token(sub='user_other', email='other@ormiston.school.nz')}"}
    response = await client.post("/api/v1/bookings", json=_payload(seeded), headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


@pytest.mark.asyncio
async def test_create_without_identity_is_unauthenticated(db_session: AsyncSession, seeded) -> None:
    with pytest.raises(Unauthenticated):
        await service.create_booking(db_session, None, BookingCreate(**_payload(seeded)))


@pytest.mark.asyncio
async def test_unknown_teacher_checked_before_fields(db_session: AsyncSession, seeded) -> None:
    identity = CurrentIdentity(user_id="user_nobody", email="nobody@ormiston.school.nz")
    with pytest.raises(TeacherNotFound):
        await service.create_booking(db_session, identity, BookingCreate())


@pytest.mark.asyncio
async def test_duplicate_insert_raises_slot_conflict(db_session: AsyncSession, seeded) -> None:
    identity = CurrentIdentity(user_id=TEACHER_USER_ID, email=TEACHER_EMAIL)
    payload = BookingCreate(**_payload(seeded))
    created = await service.create_booking(db_session, identity, payload)
    assert created.booking.period == 3
    with pytest.raises(SlotConflict):
        await service.create_booking(db_session, identity, payload)


class _Orig(Exception):
    def __init__(self, message: str, sqlstate: str = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


@pytest.mark.parametrize(
    "orig,expected",
    [
        (_Orig('duplicate key value violates unique constraint "uq_bookings_room_date_period"'), True),
        (_Orig("UNIQUE constraint failed: bookings.room_id, bookings.date, bookings.period"), True),
        (_Orig('duplicate key value violates unique constraint on "bookings"', sqlstate="23505"), True),
        (_Orig("FOREIGN KEY constraint failed"), False),
        (_Orig('null value in column "period" of relation "bookings"', sqlstate="23502"), False),
    ],
)
def test_is_slot_conflict(orig: Exception, expected: bool) -> None:
    assert service.is_slot_conflict(IntegrityError("INSERT INTO bookings", {}, orig)) is expected


async def _add_booking(db: AsyncSession, seeded, room, on: date, period: int, notes: str = None) -> Booking:
    booking = Booking(
        teacher_id=seeded["teacher"].id,
        room_id=room.id,
        subject_id=seeded["subject"].id,
        date=on,
        period=period,
        justification=notes,
    )
    db.add(booking)
    await db.commit()
    return booking


@pytest.mark.asyncio
async def test_list_bookings_newest_date_first(
    client: AsyncClient, auth_headers, seeded, db_session: AsyncSession
) -> None:
    room = seeded["rooms_a"]["Room 2"]
    await _add_booking(db_session, seeded, room, date(2025, 3, 3), 2)
    await _add_booking(db_session, seeded, room, date(2025, 3, 10), 4)
    await _add_booking(db_session, seeded, room, date(2025, 3, 10), 1, notes="Exam")

    response = await client.get("/api/v1/bookings", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert [(b["date"], b["period"]) for b in data] == [("2025-03-10", 1), ("2025-03-10", 4), ("2025-03-03", 2)]
    first = data[0]
    assert first["teacherName"] == "Jane Doe"
    assert first["teacherEmail"] == TEACHER_EMAIL
    assert first["room"] == "Room 2"
    assert first["commons"] == "Hub A"
    assert first["subject"] == "Mathematics"
    assert first["subjectCode"] == "MAT"
    assert first["notes"] == "Exam"
    # 2025-03-10 is a Monday; period 1 starts 08:45
    assert first["startTime"] == "08:45"
    assert first["endTime"] == "09:45"


@pytest.mark.asyncio
async def test_list_bookings_filtered_by_user(
    client: AsyncClient, auth_headers, seeded, db_session: AsyncSession
) -> None:
    other = User(user_id="user_other", name="Sam Lee", email="sam.lee@ormiston.school.nz")
    db_session.add(other)
    await db_session.commit()
    await _add_booking(db_session, seeded, seeded["room_b"], date(2025, 3, 4), 1)
    db_session.add(
        Booking(teacher_id=other.id, room_id=seeded["room_b"].id, subject_id=seeded["subject"].id,
                date=date(2025, 3, 4), period=2)
    )
    await db_session.commit()

    by_external = await client.get("/api/v1/bookings", params={"userId": "user_other"}, headers=auth_headers)
    by_uuid = await client.get("/api/v1/bookings", params={"userId": str(other.id)}, headers=auth_headers)
    assert [b["teacherName"] for b in by_external.json()] == ["Sam Lee"]
    assert by_uuid.json() == by_external.json()
    # Tuesday has no slot times seeded
    assert by_uuid.json()[0]["startTime"] is None


@pytest.mark.asyncio
async def test_view_search_and_pagination(
    client: AsyncClient, auth_headers, seeded, db_session: AsyncSession
) -> None:
    for period in (1, 2, 3):
        await _add_booking(db_session, seeded, seeded["rooms_a"]["Room 1"], date(2025, 3, 3), period)
    await _add_booking(db_session, seeded, seeded["room_b"], date(2025, 3, 3), 1)

    page = await client.get("/api/v1/bookings/view", params={"page": 2, "page_size": 3}, headers=auth_headers)
    assert page.status_code == 200
    data = page.json()
    assert data["total"] == 4
    assert data["total_pages"] == 2
    assert data["page"] == 2
    assert [i["commons"] for i in data["items"]] == ["Hub B"]

    searched = await client.get("/api/v1/bookings/view", params={"search": "hub b"}, headers=auth_headers)
    assert searched.json()["total"] == 1

    by_code = await client.get("/api/v1/bookings/view", params={"search": "mat"}, headers=auth_headers)
    assert by_code.json()["total"] == 4

    nothing = await client.get("/api/v1/bookings/view", params={"search": "Chemistry"}, headers=auth_headers)
    assert nothing.json() == {"items": [], "total": 0, "page": 1, "page_size": 10, "total_pages": 0}


@pytest.mark.asyncio
async def test_view_rejects_bad_page_size(client: AsyncClient, auth_headers, seeded) -> None:
    response = await client.get("/api/v1/bookings/view", params={"page_size": 0}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_concurrent_bookings_for_same_slot(file_engine: AsyncEngine, school_seeder) -> None:
    factory = build_session_factory(file_engine)
    async with factory() as db:
        school = await school_seeder(db)
    identity = CurrentIdentity(user_id=TEACHER_USER_ID, email=TEACHER_EMAIL)
    payload = BookingCreate(**_payload(school))

    async def attempt() -> str:
        async with factory() as db:
            try:
                await service.create_booking(db, identity, payload)
            except SlotConflict:
                return "conflict"
            return "ok"

    results = await asyncio.gather(attempt(), attempt())
    assert sorted(results) == ["conflict", "ok"]

    async with factory() as db:
        rows = (await db.execute(select(func.count()).select_from(Booking))).scalar()
    assert rows == 1


@pytest.mark.asyncio
async def test_created_at_is_timezone_aware(seeded) -> None:
    created_at = seeded["teacher"].created_at
    assert created_at.tzinfo is not None
    assert created_at.utcoffset().total_seconds() == 0
