import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager

from database.schema import (
    user_schema, settings_schema, card_schema, review_item_schema,
    review_history_schema, review_history_index,
)
from config import DB_PATH, DEFAULT_NEW_CARDS_PER_DAY
from scheduling.constants import DEFAULT_SETTINGS, Direction, State
from scheduling.errors import ConflictError, NotFoundError, OwnershipError
from scheduling.intervals import Interval
from scheduling.models import ReviewItem
from scheduling.settings import SchedulerConfig
from scheduling.utils import parse_timestamp, to_iso, utc_now


# USER COMMANDS ============================================

def create_user(user_id, email=None, name=None):
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            'INSERT INTO users (user_id, email, name, created_at) VALUES (?, ?, ?, ?)',
            (user_id, email, name, to_iso(utc_now()))
        )
        logging.info(f"Created user: {user_id}")


def get_user(user_id):
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM users WHERE user_id = ?', (user_id,))
        row = cursor.fetchone()
        return dict(row) if row else None


# SETTINGS COMMANDS ========================================

def get_settings(user_id) -> SchedulerConfig:
    """
    Stored settings, creating the defaults on first access.

    Unknown users get the defaults without anything being written.
    """
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT data FROM settings WHERE user_id = ?', (user_id,))
        row = cursor.fetchone()
        if row:
            return SchedulerConfig.from_dict(json.loads(row['data']))

        defaults = dict(DEFAULT_SETTINGS, new_cards_per_day=DEFAULT_NEW_CARDS_PER_DAY)
        settings = SchedulerConfig.from_dict(defaults)
        if not _user_exists(cursor, user_id):
            return settings
        _write_settings(cursor, user_id, settings)
        logging.info(f"Created default settings for user {user_id}")
        return settings


def update_settings(user_id, updates) -> SchedulerConfig:
    """Partial update. Raises ValidationError before anything is written."""
    settings = get_settings(user_id).merged(updates)
    with get_db() as conn:
        cursor = conn.cursor()
        if not _user_exists(cursor, user_id):
            raise NotFoundError('User not found')
        _write_settings(cursor, user_id, settings)
    logging.info(f"Updated settings for user {user_id}: {sorted(updates)}")
    return settings


def _user_exists(cursor, user_id):
    cursor.execute('SELECT 1 FROM users WHERE user_id = ?', (user_id,))
    return cursor.fetchone() is not None


def _write_settings(cursor, user_id, settings):
    cursor.execute(
        """INSERT INTO settings (user_id, data, updated_at) VALUES (?, ?, ?)
           ON CONFLICT(user_id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
        """,
        (user_id, json.dumps(settings.to_dict()), to_iso(utc_now()))
    )


# CARDS COMMANDS =============================================

def create_card(user_id, front, back, explanation=None, category=None, source='manual', now=None):
    """
    Save a card and its two review items (forward and reverse).

    Returns (card_dict, [forward_item, reverse_item]).
    """
    now = parse_timestamp(now) or utc_now()
    stamp = to_iso(now)
    card_id = str(uuid.uuid4())
    settings = get_settings(user_id)

    with get_db() as conn:
        cursor = conn.cursor()
        if not _user_exists(cursor, user_id):
            raise NotFoundError('User not found')
        cursor.execute(
            """INSERT INTO cards (card_id, user_id, front, back, explanation, category, source, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (card_id, user_id, front, back, explanation, category, source, stamp, stamp)
        )

        items = []
        for direction, shown, hidden in ((Direction.FORWARD, front, back), (Direction.REVERSE, back, front)):
            item = ReviewItem(
                id=str(uuid.uuid4()),
                card_id=card_id,
                direction=direction,
                state=State.NEW,
                interval=Interval.minutes(0),
                ease_factor=settings.starting_ease,
                repetitions=0,
                step_index=0,
                due_date=now,
                created_at=now,
                category=category,
                front=shown,
                back=hidden,
            )
            cursor.execute(
                """INSERT INTO review_items (
                       review_item_id, card_id, user_id, direction, state, interval, interval_unit,
                       ease_factor, repetitions, step_index, due_date, front, back, category,
                       created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (item.id, card_id, user_id, direction.value, item.state.value, item.interval.amount,
                 item.interval.unit, item.ease_factor, 0, 0, stamp, shown, hidden, category, stamp, stamp)
            )
            items.append(item)

    logging.info(f"Created card {card_id} for user {user_id}")
    return get_card(card_id), items


def get_card(card_id):
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM cards WHERE card_id = ?', (card_id,))
        row = cursor.fetchone()
        return dict(row) if row else None


def delete_card(user_id, card_id):
    """Deletes the card together with its review items and their history."""
    card = get_card(card_id)
    if card is None:
        raise NotFoundError('Card not found')
    if card['user_id'] != user_id:
        raise OwnershipError('Forbidden')

    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            """DELETE FROM review_history WHERE review_item_id IN
                   (SELECT review_item_id FROM review_items WHERE card_id = ?)
            """,
            (card_id,)
        )
        cursor.execute('DELETE FROM review_items WHERE card_id = ?', (card_id,))
        cursor.execute('DELETE FROM cards WHERE card_id = ?', (card_id,))
    logging.info(f"Deleted card {card_id} for user {user_id}")


# REVIEW COMMANDS ============================================

def get_review_item(review_item_id):
    """Raw row (including user_id) or None."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT * FROM review_items WHERE review_item_id = ?', (review_item_id,))
        row = cursor.fetchone()
        return dict(row) if row else None


def list_review_items(user_id):
    """All of a user's review items in creation order."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            'SELECT * FROM review_items WHERE user_id = ? ORDER BY created_at, rowid',
            (user_id,)
        )
        return [ReviewItem.from_row(row) for row in cursor.fetchall()]


def save_review(user_id, before, after, grade, duration_ms, reviewed_at):
    """
    Persist a graded item and append its history record in one transaction.

    The write only applies if the row still carries `before.version`;
    otherwise someone graded it in between and ConflictError is raised.
    Returns the new version.
    """
    new_version = before.version + 1
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            """UPDATE review_items
               SET state = ?, interval = ?, interval_unit = ?, ease_factor = ?,
                   repetitions = ?, step_index = ?, lapsed_interval = ?, due_date = ?,
                   last_reviewed = ?, version = ?, updated_at = ?
               WHERE review_item_id = ? AND user_id = ? AND version = ?
            """,
            (after.state.value, after.interval.amount, after.interval.unit, after.ease_factor,
             after.repetitions, after.step_index, after.lapsed_interval, to_iso(after.due_date),
             to_iso(reviewed_at), new_version, to_iso(utc_now()),
             before.id, user_id, before.version)
        )
        if cursor.rowcount == 0:
            raise ConflictError(f"Review item {before.id} was modified concurrently")

        cursor.execute(
            """INSERT INTO review_history (
                   review_item_id, user_id, grade, duration_ms, state_before, state_after,
                   interval_before, interval_after, ease_factor_before, ease_factor_after,
                   reviewed_at, review_day)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (before.id, user_id, int(grade), duration_ms, before.state.value, after.state.value,
             before.interval.in_days(), after.interval.in_days(), before.ease_factor, after.ease_factor,
             to_iso(reviewed_at), _day(reviewed_at))
        )
    return new_version


def get_review_history(user_id, review_item_id=None):
    with get_db() as conn:
        cursor = conn.cursor()
        if review_item_id is None:
            cursor.execute(
                'SELECT * FROM review_history WHERE user_id = ? ORDER BY history_id', (user_id,)
            )
        else:
            cursor.execute(
                'SELECT * FROM review_history WHERE user_id = ? AND review_item_id = ? ORDER BY history_id',
                (user_id, review_item_id)
            )
        return [dict(row) for row in cursor.fetchall()]


def count_new_graded_today(user_id, now=None):
    """How many NEW items the user introduced on the current UTC day."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            """SELECT COUNT(*) AS cnt FROM review_history
               WHERE user_id = ? AND review_day = ? AND state_before = ?
            """,
            (user_id, _day(now or utc_now()), State.NEW.value)
        )
        return cursor.fetchone()['cnt']


def reset_daily_reviews(user_id, now=None):
    """Delete today's history records. Debug helper; returns the number removed."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            'DELETE FROM review_history WHERE user_id = ? AND review_day = ?',
            (user_id, _day(now or utc_now()))
        )
        deleted = cursor.rowcount
    logging.info(f"Reset {deleted} reviews for user {user_id}")
    return deleted


def _day(moment):
    return to_iso(moment)[:10]


# DB CONNECTION ==============================================

@contextmanager
def get_db():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute('PRAGMA foreign_keys = ON')

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db():
    with get_db() as conn:
        conn.execute(user_schema)
        conn.execute(settings_schema)
        conn.execute(card_schema)
        conn.execute(review_item_schema)
        conn.execute(review_history_schema)
        conn.execute(review_history_index)
