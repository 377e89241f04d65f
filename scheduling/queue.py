"""
Daily review queue.

Due items (oldest first) always come before new material, and new items are
capped by the user's daily quota so the backlog cannot grow without bound.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from scheduling.constants import State
from scheduling.errors import ValidationError
from scheduling.models import ReviewItem
from scheduling.settings import SchedulerConfig
from scheduling.utils import parse_timestamp

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def build_queue(
    items: Iterable[ReviewItem],
    graded_new_today: int,
    config: SchedulerConfig,
    now: datetime,
    extra_new: int = 0,
) -> tuple[list[ReviewItem], dict[str, int]]:
    """
    Assemble today's session.

    graded_new_today: NEW items the user already graded today (from review history).
    extra_new: additional new items on top of the quota ("continue session").
    """
    _check_count(graded_new_today, 'graded_new_today')
    _check_count(extra_new, 'extra_new')
    now = parse_timestamp(now)

    enabled = [item for item in items if not _is_disabled(item, config)]

    due = sorted(
        (item for item in enabled if item.is_due(now)),
        key=lambda item: (item.due_date, item.id),
    )

    remaining = max(0, config.new_cards_per_day - graded_new_today)
    selected_new = _new_in_creation_order(enabled)[:remaining + extra_new]

    queue = due + selected_new
    stats = {
        'due_count': len(due),
        'new_count': len(selected_new),
        'new_remaining_today': max(0, config.new_cards_per_day - graded_new_today - len(selected_new)),
        'total_count': len(queue),
        'learning_count': sum(1 for item in enabled if item.state == State.LEARNING),
    }
    logger.debug(f"Built queue: {stats}")
    return queue, stats


def build_full_queue(items: Iterable[ReviewItem], now: datetime) -> tuple[list[ReviewItem], dict[str, int]]:
    """Every item, no due filter and no quota. For inspection only."""
    now = parse_timestamp(now)
    queue = list(items)
    stats = {
        'due_count': sum(1 for item in queue if item.is_due(now)),
        'new_count': sum(1 for item in queue if item.state == State.NEW),
        'new_remaining_today': 0,
        'total_count': len(queue),
        'learning_count': sum(1 for item in queue if item.state in (State.LEARNING, State.RELEARNING)),
    }
    return queue, stats


def queue_response(queue: list[ReviewItem], stats: dict[str, int]) -> dict[str, Any]:
    return {'queue': [item.to_response() for item in queue], 'stats': stats}


def _new_in_creation_order(items):
    new_items = [item for item in items if item.state == State.NEW]
    # sorted() is stable, so equal timestamps keep their input order
    return sorted(new_items, key=lambda item: item.created_at or _EPOCH)


def _is_disabled(item, config):
    return item.category is not None and item.category in config.disabled_categories


def _check_count(value, name):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer", field=name, value=value)
