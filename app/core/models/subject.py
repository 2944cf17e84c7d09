"""Subjects and the timetable lines each teacher teaches them on."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(255), nullable=False)


class SubjectTeacher(Base):
    """A teacher may teach the same subject on several lines."""

    __tablename__ = "subject_teachers"
    __table_args__ = (
        UniqueConstraint("teacher_id", "subject_id", "line_number", name="uq_subject_teacher_line"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    line_number = Column(Integer, nullable=False)

    teacher = relationship("User")
    subject = relationship("Subject")
