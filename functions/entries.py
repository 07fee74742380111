"""
Entry store.

Every read and write of the ``entries`` table goes through here, together with
the assemblies the routers serve (dashboard, stats, export). Functions take an
open ``Session`` and, where the answer depends on the date, an explicit
``today``. Errors are raised as ``functions.errors`` types, never HTTP ones.
"""
import calendar
import logging
import random
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from functions.errors import BackfillRequiredError, NotFoundError, StorageError, ValidationError
from functions.streak import current_streak, longest_streak, missed_days
from models.entry import Entry, RatingEnum, rating_label
from models.user import User

logger = logging.getLogger("one_smile")

EXPORT_VERSION = 3
VALID_RATINGS = {r.value for r in RatingEnum}


@contextmanager
def _storage(db: Session, action: str):
    """Turn SQLAlchemy failures into StorageError after rolling back."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"💥 Storage failure while trying to {action}: {e}", exc_info=True)
        raise StorageError(f"Could not {action}") from e


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _coerce_date(value: Union[date, str, None]) -> Optional[date]:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}, expected YYYY-MM-DD") from None


def _validate_entry(
    entry_date: Optional[date],
    text: Optional[str],
    rating: Optional[int],
    skipped: bool,
    today: date,
    min_chars: int,
) -> None:
    if entry_date is None:
        raise ValidationError("Date is required")

    if entry_date > today:
        raise ValidationError("Cannot create entry for future date")

    if skipped:
        return

    if not text or not text.strip():
        raise ValidationError("Entry text is required")

    if len(text.strip()) < min_chars:
        raise ValidationError(f"Entry must be at least {min_chars} characters")

    if rating is not None and (
        isinstance(rating, bool) or not isinstance(rating, int) or rating not in VALID_RATINGS
    ):
        raise ValidationError("Invalid rating value, expected 1, 2 or 3")


def _upsert_statement(dialect_name: str, values: dict):
    """Insert-or-replace keyed on (user_id, date) in the dialect's own syntax."""
    replaced = ("text", "rating", "skipped", "updated_at")

    if dialect_name in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert

        stmt = insert(Entry).values(**values)
        return stmt.on_duplicate_key_update(
            {column: stmt.inserted[column] for column in replaced}
        )

    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise StorageError(f"Unsupported database dialect: {dialect_name}")

    stmt = insert(Entry).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[Entry.user_id, Entry.date],
        set_={column: stmt.excluded[column] for column in replaced},
    )


def upsert_entry(
    db: Session,
    user_id: int,
    entry_date: Union[date, str, None],
    today: date,
    text: Optional[str] = None,
    rating: Optional[int] = None,
    skipped: bool = False,
    min_chars: Optional[int] = None,
) -> Entry:
    """
    Write or overwrite the entry for (user_id, entry_date).

    A skipped day stores no text and no rating whatever was passed. Ordering
    against missed days is not checked here, see save_today_entry.
    """
    if min_chars is None:
        min_chars = settings.ENTRY_MIN_CHARS

    entry_date = _coerce_date(entry_date)
    skipped = bool(skipped)
    _validate_entry(entry_date, text, rating, skipped, today, min_chars)

    now = _utcnow()
    values = {
        "user_id": user_id,
        "date": entry_date,
        "text": None if skipped else text.strip(),
        "rating": None if skipped else rating,
        "skipped": skipped,
        "created_at": now,
        "updated_at": now,
    }

    with _storage(db, "save entry"):
        db.execute(_upsert_statement(db.get_bind().dialect.name, values))
        db.commit()

    logger.info(
        f"📝 User {user_id} {'skipped' if skipped else 'logged'} {entry_date.isoformat()}"
    )
    return get_entry(db, user_id, entry_date)


def get_entry(db: Session, user_id: int, entry_date: Union[date, str]) -> Entry:
    entry_date = _coerce_date(entry_date)
    with _storage(db, "load entry"):
        entry = db.query(Entry).filter(
            Entry.user_id == user_id,
            Entry.date == entry_date
        ).first()

    if not entry:
        raise NotFoundError(f"No entry for {entry_date.isoformat()}")
    return entry


def find_entry(db: Session, user_id: int, entry_date: date) -> Optional[Entry]:
    try:
        return get_entry(db, user_id, entry_date)
    except NotFoundError:
        return None


def get_month_entries(db: Session, user_id: int, year: int, month: int) -> Dict[date, Entry]:
    """All entries of one calendar month keyed by date, in date order."""
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not date.min.year <= year <= date.max.year:
        raise ValidationError(f"Invalid year: {year}")

    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])

    with _storage(db, "load month entries"):
        entries = db.query(Entry).filter(
            Entry.user_id == user_id,
            Entry.date >= first_day,
            Entry.date <= last_day
        ).order_by(Entry.date.asc()).all()

    return {entry.date: entry for entry in entries}


def get_all_entries(db: Session, user_id: int) -> List[Entry]:
    with _storage(db, "load entries"):
        return db.query(Entry).filter(
            Entry.user_id == user_id
        ).order_by(Entry.date.desc()).all()


def _qualifying_query(db: Session, user_id: int, *columns):
    return db.query(*columns).filter(
        Entry.user_id == user_id,
        Entry.skipped == False,  # noqa: E712
        Entry.text.isnot(None),
        Entry.text != ""
    )


def get_qualifying_dates(db: Session, user_id: int) -> List[date]:
    with _storage(db, "load entry dates"):
        rows = _qualifying_query(db, user_id, Entry.date).order_by(Entry.date.desc()).all()
    return [row[0] for row in rows]


def get_total_entries(db: Session, user_id: int) -> int:
    with _storage(db, "count entries"):
        return _qualifying_query(db, user_id, Entry.id).count()


def get_current_streak(db: Session, user_id: int, today: date) -> int:
    return current_streak(
        get_qualifying_dates(db, user_id),
        today,
        max_lookback_days=settings.STREAK_MAX_LOOKBACK_DAYS,
    )


def get_longest_streak(db: Session, user_id: int) -> int:
    return longest_streak(get_qualifying_dates(db, user_id))


def get_missed_days(db: Session, user: User, today: date) -> List[date]:
    with _storage(db, "load entry dates"):
        rows = db.query(Entry.date).filter(
            Entry.user_id == user.id,
            Entry.date >= user.signup_date,
            Entry.date < today
        ).all()
    return missed_days(user.signup_date, today, [row[0] for row in rows])


def get_random_entry(db: Session, user_id: int) -> Entry:
    """Uniform pick among the qualifying entries."""
    with _storage(db, "load random entry"):
        query = _qualifying_query(db, user_id, Entry)
        total = query.count()
        if total == 0:
            raise NotFoundError("No entries found")
        return query.order_by(Entry.date.asc()).offset(random.randrange(total)).limit(1).one()


def get_stats(db: Session, user_id: int, today: date) -> dict:
    dates = get_qualifying_dates(db, user_id)
    return {
        "total_entries": len(dates),
        "current_streak": current_streak(
            dates, today, max_lookback_days=settings.STREAK_MAX_LOOKBACK_DAYS
        ),
        "longest_streak": longest_streak(dates),
    }


def get_dashboard(db: Session, user: User, today: date) -> dict:
    missed = get_missed_days(db, user, today)
    return {
        "streak": get_current_streak(db, user.id, today),
        "missed_days": missed,
        "next_required_date": missed[0] if missed else today,
        "today_entry": find_entry(db, user.id, today),
        "total_entries": get_total_entries(db, user.id),
        "today": today,
    }


def save_today_entry(
    db: Session,
    user: User,
    today: date,
    text: Optional[str] = None,
    rating: Optional[int] = None,
    skipped: bool = False,
) -> Entry:
    """
    Dashboard flow: today's entry is only accepted once every earlier day
    since signup has been logged or skipped.
    """
    missed = get_missed_days(db, user, today)
    if missed:
        logger.info(f"⏪ User {user.id} must backfill {missed[0].isoformat()} first")
        raise BackfillRequiredError(missed[0])

    return upsert_entry(db, user.id, today, today, text=text, rating=rating, skipped=skipped)


def export_entries(db: Session, user: User, today: date) -> dict:
    """Snapshot of every entry, skipped ones included, plus totals."""
    entries = get_all_entries(db, user.id)
    qualifying = [entry.date for entry in entries if entry.is_qualifying]

    return {
        "exported_at": datetime.now(timezone.utc),
        "version": EXPORT_VERSION,
        "user": {"email": user.email},
        "entries": {
            entry.date: {
                "text": entry.text,
                "rating": entry.rating,
                "rating_label": rating_label(entry.rating),
                "skipped": bool(entry.skipped),
                "created_at": entry.created_at,
                "updated_at": entry.updated_at,
            }
            for entry in entries
        },
        "stats": {
            "total_entries": len(qualifying),
            "current_streak": current_streak(
                qualifying, today, max_lookback_days=settings.STREAK_MAX_LOOKBACK_DAYS
            ),
        },
    }
