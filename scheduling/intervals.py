"""
Unit-tagged review intervals.

Learning and relearning steps are counted in minutes, review intervals in
days. Carrying the unit with the number keeps the two from being mixed up
when an item graduates or lapses.
"""
from dataclasses import dataclass
from datetime import timedelta

from scheduling.errors import ValidationError

MINUTES = 'minutes'
DAYS = 'days'

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class Interval:
    amount: float
    unit: str

    def __post_init__(self):
        if self.unit not in (MINUTES, DAYS):
            raise ValidationError(f"Unknown interval unit: {self.unit!r}", field='unit', value=self.unit)
        if self.amount < 0:
            raise ValidationError("Interval must be >= 0", field='interval', value=self.amount)

    @classmethod
    def minutes(cls, amount):
        return cls(amount, MINUTES)

    @classmethod
    def days(cls, amount):
        return cls(amount, DAYS)

    def in_minutes(self) -> float:
        if self.unit == MINUTES:
            return self.amount
        return self.amount * MINUTES_PER_DAY

    def in_days(self) -> float:
        if self.unit == DAYS:
            return self.amount
        return self.amount / MINUTES_PER_DAY

    def to_timedelta(self) -> timedelta:
        if self.unit == MINUTES:
            return timedelta(minutes=self.amount)
        return timedelta(days=self.amount)

    def __str__(self):
        return f"{self.amount:g} {self.unit}"
