"""
Per-user scheduler configuration.

A SchedulerConfig is validated once when it is built; the engine and the
queue builder then trust it.
"""
from dataclasses import dataclass, field, fields
from typing import Any

from scheduling.constants import DEFAULT_SETTINGS, MIN_EASE, NEW_CARDS_PER_DAY_MAX
from scheduling.errors import ValidationError


@dataclass(frozen=True)
class SchedulerConfig:
    learning_steps: tuple = (1, 10)
    relearning_steps: tuple = (10,)
    graduating_interval: float = 1
    easy_interval: float = 4
    starting_ease: float = 2.5
    easy_bonus: float = 1.3
    interval_modifier: float = 1.0
    maximum_interval: float = 36500
    lapse_new_interval: float = 0
    new_cards_per_day: int = 20
    disabled_categories: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        # Normalise containers so configs built from JSON lists stay hashable
        for name in ('learning_steps', 'relearning_steps'):
            steps = getattr(self, name)
            if not isinstance(steps, (list, tuple)):
                raise ValidationError(f"{name} must be a list of minutes", field=name, value=steps)
            object.__setattr__(self, name, tuple(steps))

        categories = self.disabled_categories or ()
        if (not isinstance(categories, (list, tuple, set, frozenset))
                or any(not isinstance(c, str) for c in categories)):
            raise ValidationError(
                "disabled_categories must be a list of category names",
                field='disabled_categories', value=self.disabled_categories,
            )
        object.__setattr__(self, 'disabled_categories', frozenset(categories))
        self._validate()

    def _validate(self):
        for name in ('learning_steps', 'relearning_steps'):
            steps = getattr(self, name)
            if not steps:
                raise ValidationError(f"{name} must not be empty", field=name, value=list(steps))
            if any(not _is_number(s) or s <= 0 for s in steps):
                raise ValidationError(f"{name} must be positive minute values", field=name, value=list(steps))

        if not _is_number(self.starting_ease) or self.starting_ease < MIN_EASE:
            raise ValidationError(
                f"starting_ease must be >= {MIN_EASE}", field='starting_ease', value=self.starting_ease
            )

        for name in ('graduating_interval', 'easy_interval', 'easy_bonus', 'interval_modifier'):
            value = getattr(self, name)
            if not _is_number(value) or value <= 0:
                raise ValidationError(f"{name} must be > 0", field=name, value=value)

        if not _is_number(self.maximum_interval) or self.maximum_interval < 1:
            raise ValidationError(
                "maximum_interval must be >= 1 day", field='maximum_interval', value=self.maximum_interval
            )

        if not _is_number(self.lapse_new_interval) or not 0 <= self.lapse_new_interval <= 100:
            raise ValidationError(
                "lapse_new_interval must be between 0 and 100",
                field='lapse_new_interval', value=self.lapse_new_interval,
            )

        if (not isinstance(self.new_cards_per_day, int) or isinstance(self.new_cards_per_day, bool)
                or not 0 <= self.new_cards_per_day <= NEW_CARDS_PER_DAY_MAX):
            raise ValidationError(
                f"new_cards_per_day must be between 0 and {NEW_CARDS_PER_DAY_MAX}",
                field='new_cards_per_day', value=self.new_cards_per_day,
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> 'SchedulerConfig':
        """Build from a settings dict, falling back to defaults for missing keys. Unknown keys are ignored."""
        merged = dict(DEFAULT_SETTINGS)
        for key, value in (data or {}).items():
            if key in merged and value is not None:
                merged[key] = value
        return cls(**{f.name: merged[f.name] for f in fields(cls)})

    def to_dict(self) -> dict[str, Any]:
        return {
            'new_cards_per_day': self.new_cards_per_day,
            'learning_steps': list(self.learning_steps),
            'relearning_steps': list(self.relearning_steps),
            'graduating_interval': self.graduating_interval,
            'easy_interval': self.easy_interval,
            'starting_ease': self.starting_ease,
            'easy_bonus': self.easy_bonus,
            'interval_modifier': self.interval_modifier,
            'maximum_interval': self.maximum_interval,
            'lapse_new_interval': self.lapse_new_interval,
            'disabled_categories': sorted(self.disabled_categories),
        }

    def merged(self, updates: dict[str, Any]) -> 'SchedulerConfig':
        """Partial update; rejects unknown keys."""
        known = {f.name for f in fields(self)}
        unknown = set(updates) - known
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(f"Unknown setting: {name}", field=name, value=updates[name])
        data = self.to_dict()
        data.update(updates)
        return SchedulerConfig.from_dict(data)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)
