import logging

import database.database as db
from config import SCHEDULER_ALGORITHM
from handlers.responses import handles_errors, json_response
from scheduling.errors import NotFoundError, OwnershipError, ValidationError
from scheduling.models import ReviewItem
from scheduling.queue import build_full_queue, build_queue, queue_response
from scheduling.srs import format_interval, get_scheduler, schedule_all_ratings
from scheduling.utils import (
    parse_count, parse_duration, parse_flag, parse_grade, parse_timestamp, to_iso, utc_now,
)

scheduler = get_scheduler(SCHEDULER_ALGORITHM)


@handles_errors
def submit_review(user_id, body, now=None):
    """
    Grade one review item.

    body: {review_item_id, grade, duration_ms}
    returns: {next_review, interval_days, state}
    """
    if not isinstance(body, dict):
        raise ValidationError('Request body is required', 'MISSING_BODY')

    review_item_id = body.get('review_item_id')
    if not review_item_id:
        raise ValidationError('review_item_id is required', field='review_item_id', value=review_item_id)
    grade = parse_grade(body.get('grade'))
    duration_ms = parse_duration(body.get('duration_ms'))
    now = parse_timestamp(now) or utc_now()

    item = _load_owned_item(user_id, review_item_id)
    settings = db.get_settings(user_id)

    result = scheduler.schedule(item, grade, settings, now)
    db.save_review(user_id, item, item.with_result(result, now), grade, duration_ms, now)

    logging.info(
        f"Review item {item.id}: graded {grade.name}, "
        f"{item.state.value} -> {result.state.value}, next due {to_iso(result.due_date)}"
    )

    return json_response({
        'next_review': to_iso(result.due_date),
        'interval_days': result.interval_days,
        'state': result.state.value,
    })


@handles_errors
def get_review_queue(user_id, params=None, now=None):
    """
    Today's queue. params (query-string style): all, extra_new.

    With all=true every item is returned and the quota is ignored.
    """
    params = params or {}
    show_all = parse_flag(params.get('all'))
    extra_new = parse_count(params.get('extra_new'), 'extra_new')
    now = parse_timestamp(now) or utc_now()

    items = db.list_review_items(user_id)

    if show_all:
        queue, stats = build_full_queue(items, now)
    else:
        settings = db.get_settings(user_id)
        graded_new_today = db.count_new_graded_today(user_id, now)
        queue, stats = build_queue(items, graded_new_today, settings, now, extra_new)

    return json_response(queue_response(queue, stats))


@handles_errors
def get_interval_previews(user_id, review_item_id, now=None):
    """Labels for the answer buttons, e.g. {'AGAIN': '1m', 'GOOD': '10m', ...}."""
    now = parse_timestamp(now) or utc_now()
    item = _load_owned_item(user_id, review_item_id)
    settings = db.get_settings(user_id)

    results = schedule_all_ratings(item, settings, now, scheduler)
    return json_response({
        'review_item_id': item.id,
        'previews': {grade.name: format_interval(result.interval) for grade, result in results.items()},
    })


@handles_errors
def reset_daily_reviews(user_id, now=None):
    deleted = db.reset_daily_reviews(user_id, parse_timestamp(now) or utc_now())
    return json_response({
        'message': 'Daily reviews reset successfully',
        'deleted_count': deleted,
    })


def _load_owned_item(user_id, review_item_id):
    row = db.get_review_item(review_item_id)
    if row is None:
        raise NotFoundError('Review item not found')
    if row['user_id'] != user_id:
        raise OwnershipError('Forbidden')
    return ReviewItem.from_row(row)
