"""
Create tables and seed reference data: commons, rooms, subjects, slot_times, line_slots.

Reference data is administered out of band; this script loads it from a JSON file and
is safe to re-run (existing rows are updated, missing rows inserted, nothing deleted).

Usage:
  python -m app.db.seed_reference_data --create-tables
  python -m app.db.seed_reference_data --file reference.json

JSON shape:
  {
    "commons": [{"name": "Hub A", "rooms": [{"name": "A1", "bookable": true}]}],
    "subjects": [{"code": "MAT", "name": "Mathematics"}],
    "slot_times": [{"weekday": "Monday", "slot_number": 1, "start_time": "08:45", "end_time": "09:45"}],
    "line_slots": [{"line_number": 1, "weekday": "Monday", "slot_number": 1}]
  }
"""

import argparse
import asyncio
import json
from datetime import datetime, time
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.core.config import settings
from app.core.models import Common, LineSlot, Room, SlotTime, Subject  # noqa: F401
from app.db.session import Base, build_engine, build_session_factory


def _parse_time(v: str) -> time:
    v = v.strip()
    if len(v) == 5:  # HH:MM
        return datetime.strptime(v, "%H:%M").time()
    return datetime.strptime(v, "%H:%M:%S").time()


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_reference_data(db: AsyncSession, data: Dict[str, Any]) -> Dict[str, int]:
    """Upsert reference rows. Returns counts of rows inserted per table."""
    counts = {"commons": 0, "rooms": 0, "subjects": 0, "slot_times": 0, "line_slots": 0}

    for c in data.get("commons", []):
        result = await db.execute(select(Common).where(Common.name == c["name"]))
        common = result.scalar_one_or_none()
        if common is None:
            common = Common(name=c["name"])
            db.add(common)
            await db.flush()  # to populate common.id
            counts["commons"] += 1
        for r in c.get("rooms", []):
            result = await db.execute(
                select(Room).where(Room.common_id == common.id, Room.name == r["name"])
            )
            room = result.scalar_one_or_none()
            if room is None:
                db.add(Room(name=r["name"], common_id=common.id, is_bookable=r.get("bookable", True)))
                counts["rooms"] += 1
            else:
                room.is_bookable = r.get("bookable", True)

    for s in data.get("subjects", []):
        result = await db.execute(select(Subject).where(Subject.code == s["code"]))
        subject = result.scalar_one_or_none()
        if subject is None:
            db.add(Subject(code=s["code"], name=s["name"]))
            counts["subjects"] += 1
        else:
            subject.name = s["name"]

    for st in data.get("slot_times", []):
        result = await db.execute(
            select(SlotTime).where(
                SlotTime.weekday == st["weekday"],
                SlotTime.slot_number == st["slot_number"],
            )
        )
        slot = result.scalar_one_or_none()
        start, end = _parse_time(st["start_time"]), _parse_time(st["end_time"])
        if slot is None:
            db.add(SlotTime(weekday=st["weekday"], slot_number=st["slot_number"], start_time=start, end_time=end))
            counts["slot_times"] += 1
        else:
            slot.start_time, slot.end_time = start, end

    for ls in data.get("line_slots", []):
        result = await db.execute(
            select(LineSlot.id).where(
                LineSlot.line_number == ls["line_number"],
                LineSlot.weekday == ls["weekday"],
                LineSlot.slot_number == ls["slot_number"],
            )
        )
        if result.scalar_one_or_none() is None:
            db.add(LineSlot(line_number=ls["line_number"], weekday=ls["weekday"], slot_number=ls["slot_number"]))
            counts["line_slots"] += 1

    await db.commit()
    return counts


async def main(file: Optional[Path], create: bool) -> None:
    engine = build_engine(settings.database_url)
    try:
        if create:
            await create_tables(engine)
            print("Tables created")
        if file is not None:
            data = json.loads(file.read_text(encoding="utf-8"))
            async with build_session_factory(engine)() as db:
                try:
                    counts = await seed_reference_data(db, data)
                except Exception as e:
                    print(f"Error seeding reference data: {e}")
                    await db.rollback()
                    raise
            print("=" * 60)
            print("Reference Data Seeding Summary")
            print("=" * 60)
            for table, n in counts.items():
                print(f"{table} inserted: {n}")
            print("=" * 60)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed booking reference data")
    parser.add_argument("--file", type=Path, default=None, help="JSON file with reference data")
    parser.add_argument("--create-tables", action="store_true", help="Create all tables first")
    args = parser.parse_args()
    asyncio.run(main(args.file, args.create_tables))
