"""
SM-2 spaced repetition scheduler with Anki-style learning steps.

Item states: NEW -> LEARNING -> REVIEW
                                -> RELEARNING (on lapse) -> REVIEW

Grades: AGAIN (0), HARD (2), GOOD (3), EASY (4)

Pure functions of (item, grade, config, now): no I/O, no clock reads, no
shared state. Steps are minutes, review intervals are days; see intervals.py.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from scheduling.constants import (
    Grade, State,
    EASY_EASE_BONUS, HARD_EASE_PENALTY, HARD_INTERVAL_FACTOR, LAPSE_EASE_PENALTY, MIN_EASE,
)
from scheduling.errors import ValidationError
from scheduling.intervals import Interval
from scheduling.models import ReviewItem
from scheduling.settings import SchedulerConfig
from scheduling.utils import parse_grade, parse_timestamp

logger = logging.getLogger(__name__)

AGAIN = Grade.AGAIN
HARD = Grade.HARD
GOOD = Grade.GOOD
EASY = Grade.EASY


@dataclass(frozen=True)
class ScheduleResult:
    state: State
    interval: Interval
    ease_factor: float
    repetitions: int
    step_index: int
    due_date: datetime
    lapsed_interval: Optional[float] = None

    @property
    def interval_days(self) -> float:
        return self.interval.in_days()


class Scheduler(Protocol):
    """Anything that can turn (item, grade, config, now) into the item's next state."""
    name: str

    def schedule(self, item: ReviewItem, grade: Grade, config: SchedulerConfig,
                 now: datetime) -> ScheduleResult:
        ...


class SM2Scheduler:
    name = 'sm2'

    def schedule(self, item: ReviewItem, grade: Grade, config: SchedulerConfig,
                 now: datetime) -> ScheduleResult:
        grade = parse_grade(grade)
        now = parse_timestamp(now)

        if item.state in (State.NEW, State.LEARNING):
            step = item.step_index if item.state == State.LEARNING else 0
            result = _schedule_learning(item, grade, step, config, now)
        elif item.state == State.RELEARNING:
            result = _schedule_relearning(item, grade, config, now)
        else:
            result = _schedule_review(item, grade, config, now)

        logger.debug(
            f"Item {item.id}: {item.state.value} --{grade.name}--> {result.state.value}, "
            f"interval={result.interval}, ease={result.ease_factor:.2f}"
        )
        return result


def _schedule_learning(item, grade, step, config, now):
    """Handle NEW and LEARNING items. NEW is LEARNING at step 0."""
    steps = config.learning_steps

    if grade == AGAIN:
        return _step_result(State.LEARNING, steps, 0, item, now)

    elif grade == HARD:
        # Repeat the current step
        return _step_result(State.LEARNING, steps, step, item, now)

    elif grade == GOOD:
        next_step = step + 1
        if next_step >= len(steps):
            return _graduate(Interval.days(config.graduating_interval), config, now)
        return _step_result(State.LEARNING, steps, next_step, item, now)

    # EASY skips the remaining steps
    return _graduate(Interval.days(config.easy_interval), config, now)


def _schedule_review(item, grade, config, now):
    """Handle items in REVIEW (the SM-2 part)."""
    previous = item.interval.in_days()
    ease = item.ease_factor

    if grade == AGAIN:
        # Lapse: relearning always starts from its first step
        interval = Interval.minutes(config.relearning_steps[0])
        return ScheduleResult(
            state=State.RELEARNING,
            interval=interval,
            ease_factor=max(MIN_EASE, ease - LAPSE_EASE_PENALTY),
            repetitions=0,
            step_index=0,
            due_date=now + interval.to_timedelta(),
            lapsed_interval=previous,
        )

    elif grade == HARD:
        new_ease = max(MIN_EASE, ease - HARD_EASE_PENALTY)
        days = _review_days(previous * HARD_INTERVAL_FACTOR * config.interval_modifier, config)
        repetitions = item.repetitions

    elif grade == GOOD:
        new_ease = max(MIN_EASE, ease)
        days = _review_days(previous * ease * config.interval_modifier, config)
        repetitions = item.repetitions + 1

    else:
        new_ease = max(MIN_EASE, ease) + EASY_EASE_BONUS
        days = _review_days(previous * ease * config.easy_bonus * config.interval_modifier, config)
        repetitions = item.repetitions + 1

    interval = Interval.days(days)
    return ScheduleResult(
        state=State.REVIEW,
        interval=interval,
        ease_factor=new_ease,
        repetitions=repetitions,
        step_index=0,
        due_date=now + interval.to_timedelta(),
    )


def _schedule_relearning(item, grade, config, now):
    """Handle lapsed items working back through the relearning steps."""
    steps = config.relearning_steps
    step = item.step_index

    if grade == AGAIN:
        return _step_result(State.RELEARNING, steps, 0, item, now)

    elif grade == HARD:
        return _step_result(State.RELEARNING, steps, step, item, now)

    elif grade == GOOD and step + 1 < len(steps):
        return _step_result(State.RELEARNING, steps, step + 1, item, now)

    # GOOD past the last step, or EASY anywhere: back to REVIEW
    if item.lapsed_interval is not None:
        base = item.lapsed_interval
    else:
        base = item.interval.in_days()
    days = max(1, round(base * config.lapse_new_interval / 100))
    interval = Interval.days(min(days, config.maximum_interval))
    return ScheduleResult(
        state=State.REVIEW,
        interval=interval,
        ease_factor=max(MIN_EASE, item.ease_factor),
        repetitions=item.repetitions,
        step_index=0,
        due_date=now + interval.to_timedelta(),
    )


def _step_result(state, steps, step, item, now):
    # Steps may have been shortened since the item was last graded
    step = min(step, len(steps) - 1)
    interval = Interval.minutes(steps[step])
    return ScheduleResult(
        state=state,
        interval=interval,
        ease_factor=max(MIN_EASE, item.ease_factor),
        repetitions=item.repetitions,
        step_index=step,
        due_date=now + interval.to_timedelta(),
        lapsed_interval=item.lapsed_interval if state == State.RELEARNING else None,
    )


def _graduate(interval, config, now):
    return ScheduleResult(
        state=State.REVIEW,
        interval=interval,
        ease_factor=config.starting_ease,
        repetitions=1,
        step_index=0,
        due_date=now + interval.to_timedelta(),
    )


def _review_days(days, config):
    """Whole days, clamped to [1, maximum_interval]."""
    return min(max(1, round(days)), config.maximum_interval)


# ============================================================
# Algorithm registry
# ============================================================

SCHEDULERS = {
    SM2Scheduler.name: SM2Scheduler,
}


def get_scheduler(name: str = 'sm2') -> Scheduler:
    try:
        return SCHEDULERS[name.lower()]()
    except KeyError:
        raise ValidationError(f"Unknown scheduling algorithm: {name}", field='algorithm', value=name)


_default_scheduler = SM2Scheduler()


def schedule(item: ReviewItem, grade, config: SchedulerConfig, now: datetime) -> ScheduleResult:
    """Schedule with the default SM-2 algorithm."""
    return _default_scheduler.schedule(item, grade, config, now)


def schedule_all_ratings(item: ReviewItem, config: SchedulerConfig, now: datetime,
                         scheduler: Scheduler | None = None) -> dict[Grade, ScheduleResult]:
    """What every grade would do to this item. Used for answer-button previews."""
    scheduler = scheduler or _default_scheduler
    return {grade: scheduler.schedule(item, grade, config, now) for grade in Grade}


def format_interval(interval: Interval) -> str:
    """Short human-readable label: '10m', '3h', '1d', '2mo', '1.5y'."""
    minutes = interval.in_minutes()
    if minutes < 60:
        return f"{max(1, round(minutes))}m"
    if minutes < 24 * 60:
        return f"{round(minutes / 60)}h"

    days = round(interval.in_days())
    if days < 30:
        return f"{days}d"
    elif days < 365:
        return f"{round(days / 30)}mo"
    else:
        return f"{round(days / 365, 1)}y"
