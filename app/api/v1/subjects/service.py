import logging
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UpstreamFailure
from app.core.models import Subject, SubjectTeacher
from app.monitoring import sentry

from .schemas import TeacherSubjectItem

logger = logging.getLogger(__name__)


async def list_teacher_subjects(db: AsyncSession, teacher_id: UUID) -> List[TeacherSubjectItem]:
    """One entry per (subject, line) the teacher teaches. A dangling subject renders with empty name/code."""
    stmt = (
        select(SubjectTeacher.subject_id, SubjectTeacher.line_number, Subject.name, Subject.code)
        .outerjoin(Subject, Subject.id == SubjectTeacher.subject_id)
        .where(SubjectTeacher.teacher_id == teacher_id)
        .order_by(Subject.name, SubjectTeacher.line_number)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        logger.error("subject_teachers.select failed for teacher %s: %s", teacher_id, e)
        sentry.capture_exception(e, extra={"operation": "subject_teachers.select", "teacher_id": str(teacher_id)})
        raise UpstreamFailure("Failed to fetch subjects")
    return [
        TeacherSubjectItem(
            id=subject_id,
            name=f"{name or ''} (Line {line})",
            code=code or "",
            line=line,
        )
        for subject_id, line, name, code in result.all()
    ]


async def subject_exists(db: AsyncSession, subject_id: int) -> bool:
    result = await db.execute(select(Subject.id).where(Subject.id == subject_id))
    return result.scalar_one_or_none() is not None
