from datetime import date, timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import SIGNUP_DATE, smile_text
from functions import entries as entry_store
from functions.errors import BackfillRequiredError, NotFoundError, StorageError, ValidationError
from models.entry import Entry

TODAY = date(2024, 1, 5)


def log(db, user, day, text=None, rating=None, skipped=False, today=TODAY):
    if text is None and not skipped:
        text = smile_text()
    return entry_store.upsert_entry(db, user.id, day, today, text=text, rating=rating, skipped=skipped)


def test_upsert_same_day_twice_keeps_one_row(db, user):
    log(db, user, TODAY, text=smile_text(word="first "), rating=1)
    log(db, user, TODAY, text=smile_text(word="second "), rating=3)

    rows = db.query(Entry).filter(Entry.user_id == user.id).all()
    assert len(rows) == 1
    assert rows[0].text.startswith("second")
    assert rows[0].rating == 3


def test_upsert_overwrite_can_turn_entry_into_skip(db, user):
    log(db, user, TODAY, rating=2)
    entry = log(db, user, TODAY, skipped=True)

    assert entry.skipped is True
    assert entry.text is None
    assert entry.rating is None


def test_skip_discards_text_and_rating(db, user):
    entry = entry_store.upsert_entry(
        db, user.id, TODAY, TODAY, text="ignored", rating=3, skipped=True
    )
    assert entry.skipped is True
    assert entry.text is None
    assert entry.rating is None


def test_text_is_stored_trimmed(db, user):
    entry = log(db, user, TODAY, text="   " + smile_text() + "\n")
    assert entry.text == smile_text()


def test_upsert_accepts_iso_string_dates(db, user):
    entry = log(db, user, "2024-01-03")
    assert entry.date == date(2024, 1, 3)


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"entry_date": None}, "Date is required"),
        ({"entry_date": TODAY + timedelta(days=1)}, "future"),
        ({"entry_date": "not-a-date"}, "Invalid date"),
        ({"text": ""}, "text is required"),
        ({"text": "   "}, "text is required"),
        ({"text": smile_text(99)}, "at least 100 characters"),
        ({"rating": 0}, "Invalid rating"),
        ({"rating": 4}, "Invalid rating"),
    ],
)
def test_upsert_rejects_invalid_input(db, user, kwargs, message):
    params = {"entry_date": TODAY, "text": smile_text(), "rating": None}
    params.update(kwargs)

    with pytest.raises(ValidationError, match=message):
        entry_store.upsert_entry(
            db, user.id, params["entry_date"], TODAY, text=params["text"], rating=params["rating"]
        )

    assert db.query(Entry).count() == 0


def test_upsert_respects_configured_minimum(db, user):
    entry = entry_store.upsert_entry(db, user.id, TODAY, TODAY, text="tiny", min_chars=3)
    assert entry.text == "tiny"


def test_past_dates_are_accepted_out_of_order(db, user):
    log(db, user, date(2024, 1, 4))
    log(db, user, date(2024, 1, 2))
    assert [e.date for e in entry_store.get_all_entries(db, user.id)] == [
        date(2024, 1, 4),
        date(2024, 1, 2),
    ]


def test_get_entry_missing_raises_not_found(db, user):
    with pytest.raises(NotFoundError):
        entry_store.get_entry(db, user.id, TODAY)


def test_month_entries_cover_whole_month_only(db, user):
    today = date(2024, 3, 1)
    for day in (date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 29), date(2024, 3, 1)):
        log(db, user, day, today=today)

    month = entry_store.get_month_entries(db, user.id, 2024, 2)
    assert list(month) == [date(2024, 2, 1), date(2024, 2, 29)]


@pytest.mark.parametrize("month", [0, 13])
def test_month_entries_reject_bad_month(db, user, month):
    with pytest.raises(ValidationError):
        entry_store.get_month_entries(db, user.id, 2024, month)


def test_missed_days_example(db, user):
    log(db, user, date(2024, 1, 1))
    log(db, user, date(2024, 1, 3))

    assert entry_store.get_missed_days(db, user, TODAY) == [date(2024, 1, 2), date(2024, 1, 4)]


def test_skipped_days_are_not_missed(db, user):
    log(db, user, date(2024, 1, 2), skipped=True)
    assert entry_store.get_missed_days(db, user, date(2024, 1, 3)) == [date(2024, 1, 1)]


def test_streaks_ignore_skipped_days(db, user):
    for day in (date(2024, 1, 3), date(2024, 1, 5)):
        log(db, user, day)
    log(db, user, date(2024, 1, 4), skipped=True)

    assert entry_store.get_current_streak(db, user.id, TODAY) == 1
    assert entry_store.get_longest_streak(db, user.id) == 1
    assert entry_store.get_total_entries(db, user.id) == 2


def test_stats_for_user_without_entries(db, user):
    assert entry_store.get_stats(db, user.id, TODAY) == {
        "total_entries": 0,
        "current_streak": 0,
        "longest_streak": 0,
    }


def test_stats_current_and_longest(db, user):
    for day in (date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 5)):
        log(db, user, day)

    assert entry_store.get_stats(db, user.id, TODAY) == {
        "total_entries": 4,
        "current_streak": 1,
        "longest_streak": 3,
    }


def test_random_entry_without_qualifying_entries(db, user):
    log(db, user, TODAY, skipped=True)
    with pytest.raises(NotFoundError):
        entry_store.get_random_entry(db, user.id)


def test_random_entry_only_picks_qualifying_entries(db, user):
    logged = {date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4)}
    for day in logged:
        log(db, user, day)
    log(db, user, date(2024, 1, 3), skipped=True)

    seen = {entry_store.get_random_entry(db, user.id).date for _ in range(200)}
    assert seen == logged


def test_dashboard(db, user):
    log(db, user, date(2024, 1, 1))
    log(db, user, date(2024, 1, 3))
    log(db, user, TODAY, rating=2)

    dashboard = entry_store.get_dashboard(db, user, TODAY)
    assert dashboard["streak"] == 1
    assert dashboard["missed_days"] == [date(2024, 1, 2), date(2024, 1, 4)]
    assert dashboard["next_required_date"] == date(2024, 1, 2)
    assert dashboard["today_entry"].rating == 2
    assert dashboard["total_entries"] == 3
    assert dashboard["today"] == TODAY


def test_dashboard_on_signup_day(db, user):
    dashboard = entry_store.get_dashboard(db, user, SIGNUP_DATE)
    assert dashboard["missed_days"] == []
    assert dashboard["next_required_date"] == SIGNUP_DATE
    assert dashboard["today_entry"] is None


def test_save_today_requires_backfill(db, user):
    log(db, user, date(2024, 1, 1))

    with pytest.raises(BackfillRequiredError) as excinfo:
        entry_store.save_today_entry(db, user, date(2024, 1, 3), text=smile_text())

    assert excinfo.value.oldest_missed_date == date(2024, 1, 2)
    assert db.query(Entry).count() == 1


def test_save_today_after_backfill(db, user):
    log(db, user, date(2024, 1, 1))
    log(db, user, date(2024, 1, 2), skipped=True)

    entry = entry_store.save_today_entry(db, user, date(2024, 1, 3), text=smile_text(), rating=1)
    assert entry.date == date(2024, 1, 3)
    assert entry.rating == 1


def test_export_includes_skipped_entries_and_labels(db, user):
    log(db, user, date(2024, 1, 3), rating=3)
    log(db, user, date(2024, 1, 4), skipped=True)
    log(db, user, TODAY)

    snapshot = entry_store.export_entries(db, user, TODAY)

    assert snapshot["version"] == 3
    assert snapshot["user"] == {"email": user.email}
    assert set(snapshot["entries"]) == {date(2024, 1, 3), date(2024, 1, 4), TODAY}
    assert snapshot["entries"][date(2024, 1, 3)]["rating_label"] == "Pure joy"
    assert snapshot["entries"][date(2024, 1, 4)]["skipped"] is True
    assert snapshot["entries"][date(2024, 1, 4)]["rating_label"] is None
    assert snapshot["entries"][TODAY]["rating_label"] is None
    assert snapshot["stats"] == {"total_entries": 2, "current_streak": 1}


def test_storage_failure_becomes_storage_error(db, user, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("INSERT INTO entries", {}, Exception("disk I/O error"))

    monkeypatch.setattr(entry_store, "_upsert_statement", broken)

    with pytest.raises(StorageError) as excinfo:
        log(db, user, TODAY)

    assert "disk" not in excinfo.value.message
    assert db.query(Entry).count() == 0


@pytest.mark.parametrize("rating", [True, "3", 2.0])
def test_upsert_rejects_non_integer_rating(db, user, rating):
    with pytest.raises(ValidationError, match="Invalid rating"):
        log(db, user, TODAY, rating=rating)


def test_second_row_for_same_day_violates_unique_key(db, user):
    db.add(Entry(user_id=user.id, date=TODAY, text=smile_text(), skipped=False))
    db.commit()

    db.add(Entry(user_id=user.id, date=TODAY, text=smile_text(word="again "), skipped=False))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    assert db.query(Entry).filter(Entry.user_id == user.id).count() == 1
