import logging

import database.database as db
from handlers.responses import handles_errors, json_response
from scheduling.errors import ValidationError
from scheduling.utils import parse_timestamp


@handles_errors
def create_card(user_id, body, now=None):
    """
    body: {front, back, explanation?, category?}

    Every card gets two review items, one per direction, scheduled independently.
    """
    if not isinstance(body, dict):
        raise ValidationError('Request body is required', 'MISSING_BODY')

    front = _required_text(body, 'front')
    back = _required_text(body, 'back')
    category = (body.get('category') or '').strip() or None

    card, items = db.create_card(
        user_id, front, back,
        explanation=body.get('explanation'),
        category=category,
        now=parse_timestamp(now),
    )
    logging.info(f"User {user_id} added card {card['card_id']} ({category or 'no category'})")

    return json_response({
        'card': card,
        'review_items': [item.to_response() for item in items],
    }, status=201)


@handles_errors
def delete_card(user_id, card_id):
    db.delete_card(user_id, card_id)
    return json_response({'message': 'Card deleted', 'card_id': card_id})


def _required_text(body, name):
    value = body.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required", field=name, value=value)
    return value.strip()
