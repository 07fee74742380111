from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Any, Optional, Dict, List
from datetime import datetime, date as dt_date


class EntryBase(BaseModel):
    text: Optional[str] = Field(None, description="What made you smile")
    # Checked by the entry store, which drops it on skipped days
    rating: Optional[Any] = Field(None, description="1 = Small win, 2 = Made my day, 3 = Pure joy")
    skipped: bool = Field(False, description="Explicitly skip the day")

    @field_validator("skipped", mode="before")
    @classmethod
    def none_is_not_skipped(cls, v):
        return False if v is None else v


class EntryCreate(EntryBase):
    """Schema for writing the entry of any past day"""
    date: Optional[dt_date] = Field(None, description="Calendar date of the entry (YYYY-MM-DD)")


class TodayEntryCreate(EntryBase):
    """Schema for writing today's entry from the dashboard"""
    pass


class EntrySaved(BaseModel):
    message: str
    date: dt_date
    rating: Optional[int] = None
    skipped: bool


class EntrySummary(BaseModel):
    """Entry as shown on the calendar and the dashboard"""
    model_config = ConfigDict(from_attributes=True)

    date: dt_date
    text: Optional[str] = None
    rating: Optional[int] = None
    skipped: bool


class EntryResponse(EntrySummary):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RandomEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: dt_date
    text: str
    rating: Optional[int] = None


class MonthEntriesResponse(BaseModel):
    entries: Dict[dt_date, EntrySummary]


class DashboardResponse(BaseModel):
    streak: int
    missed_days: List[dt_date]
    next_required_date: dt_date
    today_entry: Optional[EntrySummary] = None
    total_entries: int
    today: dt_date


class StatsResponse(BaseModel):
    total_entries: int
    current_streak: int
    longest_streak: int


class ExportedEntry(BaseModel):
    text: Optional[str] = None
    rating: Optional[int] = None
    rating_label: Optional[str] = None
    skipped: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExportUser(BaseModel):
    email: str


class ExportStats(BaseModel):
    total_entries: int
    current_streak: int


class ExportResponse(BaseModel):
    exported_at: datetime
    version: int
    user: ExportUser
    entries: Dict[dt_date, ExportedEntry]
    stats: ExportStats
