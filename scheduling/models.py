from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from scheduling.constants import Direction, State, SCHEDULED_STATES
from scheduling.intervals import DAYS, MINUTES, Interval
from scheduling.utils import parse_timestamp, to_iso


@dataclass(frozen=True)
class ReviewItem:
    """
    One independently scheduled side of a card.

    `interval` is counted in minutes while the item is in a step state and in
    days once it is in REVIEW. While RELEARNING, `lapsed_interval` holds (in
    days) the review interval in force when the item lapsed.
    """
    id: str
    card_id: str
    direction: Direction
    state: State
    interval: Interval
    ease_factor: float
    repetitions: int
    step_index: int
    due_date: datetime
    last_reviewed: Optional[datetime] = None
    created_at: Optional[datetime] = None
    category: Optional[str] = None
    front: str = ''
    back: str = ''
    lapsed_interval: Optional[float] = None
    version: int = 0

    def __post_init__(self):
        # Naive timestamps are taken as UTC, same as the engine's `now`
        for name in ('due_date', 'last_reviewed', 'created_at'):
            object.__setattr__(self, name, parse_timestamp(getattr(self, name)))

    def is_due(self, now: datetime) -> bool:
        return self.state in SCHEDULED_STATES and self.due_date <= now

    def with_result(self, result, reviewed_at: datetime) -> 'ReviewItem':
        """Copy of this item with a schedule result applied."""
        return replace(
            self,
            state=result.state,
            interval=result.interval,
            ease_factor=result.ease_factor,
            repetitions=result.repetitions,
            step_index=result.step_index,
            due_date=result.due_date,
            lapsed_interval=result.lapsed_interval,
            last_reviewed=reviewed_at,
        )

    @classmethod
    def from_row(cls, row) -> 'ReviewItem':
        """Build from a sqlite3.Row or plain dict."""
        row = dict(row)
        return cls(
            id=row['review_item_id'],
            card_id=row['card_id'],
            direction=Direction(row['direction']),
            state=State(row['state']),
            interval=Interval(row['interval'], row.get('interval_unit') or _default_unit(row['state'])),
            ease_factor=row['ease_factor'],
            repetitions=row['repetitions'],
            step_index=row['step_index'],
            due_date=parse_timestamp(row['due_date']),
            last_reviewed=parse_timestamp(row.get('last_reviewed')),
            created_at=parse_timestamp(row.get('created_at')),
            category=row.get('category'),
            front=row.get('front') or '',
            back=row.get('back') or '',
            lapsed_interval=row.get('lapsed_interval'),
            version=row.get('version') or 0,
        )

    def to_response(self) -> dict[str, Any]:
        """Queue entry shape. Intervals are reported in days."""
        return {
            'id': self.id,
            'review_item_id': self.id,
            'card_id': self.card_id,
            'direction': self.direction.value,
            'state': self.state.value,
            'interval': self.interval.in_days(),
            'ease_factor': self.ease_factor,
            'repetitions': self.repetitions,
            'step_index': self.step_index,
            'due_date': to_iso(self.due_date),
            'last_reviewed': to_iso(self.last_reviewed),
            'created_at': to_iso(self.created_at),
            'front': self.front,
            'back': self.back,
            'category': self.category,
        }


def _default_unit(state):
    return DAYS if State(state) == State.REVIEW else MINUTES
