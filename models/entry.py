# models/entry.py
from sqlalchemy import Column, Integer, Text, DateTime, Date, Boolean, SmallInteger, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from sqlalchemy.sql import func
import enum


class RatingEnum(enum.IntEnum):
    small_win = 1
    made_my_day = 2
    pure_joy = 3


RATING_LABELS = {
    RatingEnum.small_win: "Small win",
    RatingEnum.made_my_day: "Made my day",
    RatingEnum.pure_joy: "Pure joy",
}


def rating_label(rating):
    if rating is None:
        return None
    return RATING_LABELS.get(rating)


class Entry(Base):
    __tablename__ = "entries"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_entries_user_date"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    text = Column(Text, nullable=True)
    rating = Column(SmallInteger, nullable=True)
    skipped = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.current_timestamp())
    updated_at = Column(
        DateTime,
        default=func.current_timestamp(),
        onupdate=func.current_timestamp()
    )

    user = relationship("User", back_populates="entries")

    @property
    def is_qualifying(self) -> bool:
        return not self.skipped and bool(self.text)
