import database.database as db
from handlers.responses import handles_errors, json_response
from scheduling.errors import ValidationError


@handles_errors
def get_settings(user_id):
    settings = db.get_settings(user_id)
    return json_response({'settings': dict(settings.to_dict(), user_id=user_id)})


@handles_errors
def update_settings(user_id, body):
    """Partial update; unknown or out-of-range fields are rejected with 400."""
    if not isinstance(body, dict) or not body:
        raise ValidationError('Request body is required', 'MISSING_BODY')

    settings = db.update_settings(user_id, body)
    return json_response({'settings': dict(settings.to_dict(), user_id=user_id)})
