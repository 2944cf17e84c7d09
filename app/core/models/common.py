"""Commons (named building areas) and the rooms inside them."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.session import Base


class Common(Base):
    __tablename__ = "commons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)

    rooms = relationship("Room", back_populates="common")


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        # Room names are only unique within their common
        UniqueConstraint("common_id", "name", name="uq_room_common_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    common_id = Column(Integer, ForeignKey("commons.id", ondelete="RESTRICT"), nullable=False)
    is_bookable = Column(Boolean, nullable=False, default=True)

    common = relationship("Common", back_populates="rooms")
