from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import date

from database import get_db
from functions import entries as entry_store
from models.user import User
from routers.dependencies import get_current_account, get_today
from schema.entry import (
    EntryCreate, TodayEntryCreate, EntrySaved, EntryResponse,
    RandomEntryResponse, MonthEntriesResponse, DashboardResponse, StatsResponse,
    ExportResponse
)

entries_router = APIRouter(prefix="/entries", tags=["Entries"])


def _saved(entry) -> dict:
    return {
        "message": "Day skipped" if entry.skipped else "Entry saved",
        "date": entry.date,
        "rating": entry.rating,
        "skipped": entry.skipped,
    }


@entries_router.get('/dashboard', response_model=DashboardResponse)
def get_dashboard(
    user: User = Depends(get_current_account),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    """Streak, days waiting for backfill and today's entry"""
    return entry_store.get_dashboard(db, user, today)


@entries_router.get('/month/{year}/{month}', response_model=MonthEntriesResponse)
def get_month_entries(
    year: int,
    month: int,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    entries = entry_store.get_month_entries(db, user.id, year, month)
    return {"entries": entries}


@entries_router.post('', response_model=EntrySaved)
def save_entry(
    data: EntryCreate,
    user: User = Depends(get_current_account),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    """Create or overwrite the entry of any day up to today"""
    entry = entry_store.upsert_entry(
        db,
        user.id,
        data.date,
        today,
        text=data.text,
        rating=data.rating,
        skipped=data.skipped,
    )
    return _saved(entry)


@entries_router.post('/today', response_model=EntrySaved)
def save_today_entry(
    data: TodayEntryCreate,
    user: User = Depends(get_current_account),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    """Log today, refused while an earlier day is still unresolved"""
    entry = entry_store.save_today_entry(
        db,
        user,
        today,
        text=data.text,
        rating=data.rating,
        skipped=data.skipped,
    )
    return _saved(entry)


@entries_router.get('/action/random', response_model=RandomEntryResponse)
def get_random_entry(
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    return entry_store.get_random_entry(db, user.id)


@entries_router.get('/action/stats', response_model=StatsResponse)
def get_stats(
    user: User = Depends(get_current_account),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    return entry_store.get_stats(db, user.id, today)


@entries_router.get('/action/export', response_model=ExportResponse)
def export_entries(
    user: User = Depends(get_current_account),
    today: date = Depends(get_today),
    db: Session = Depends(get_db)
):
    return entry_store.export_entries(db, user, today)


@entries_router.get('/{entry_date}', response_model=EntryResponse)
def get_entry(
    entry_date: date,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db)
):
    return entry_store.get_entry(db, user.id, entry_date)
