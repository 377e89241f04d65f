from enum import Enum, IntEnum


class Grade(IntEnum):
    # 1 is reserved and never accepted
    AGAIN = 0
    HARD = 2
    GOOD = 3
    EASY = 4


class State(str, Enum):
    NEW = 'NEW'
    LEARNING = 'LEARNING'
    REVIEW = 'REVIEW'
    RELEARNING = 'RELEARNING'


class Direction(str, Enum):
    FORWARD = 'forward'
    REVERSE = 'reverse'


# States that can be "due"
SCHEDULED_STATES = (State.LEARNING, State.REVIEW, State.RELEARNING)

MIN_EASE = 1.3

# Ease adjustments applied in REVIEW
LAPSE_EASE_PENALTY = 0.20
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15

HARD_INTERVAL_FACTOR = 1.2

NEW_CARDS_PER_DAY_MAX = 100

DEFAULT_SETTINGS = {
    'new_cards_per_day': 20,
    'learning_steps': [1, 10],
    'relearning_steps': [10],
    'graduating_interval': 1,
    'easy_interval': 4,
    'starting_ease': 2.5,
    'easy_bonus': 1.3,
    'interval_modifier': 1.0,
    'maximum_interval': 36500,   # 100 years
    'lapse_new_interval': 0,     # percent of the pre-lapse interval
    'disabled_categories': [],
}
