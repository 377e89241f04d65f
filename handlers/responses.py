"""
Response shapes shared by all handlers.

Every handler returns {'status': <http-like code>, 'body': <json-able dict>}.
Errors carry {'error', 'code'} and, for validation failures, 'details'.
"""
import functools
import logging

from scheduling.errors import ConflictError, SchedulingError, ValidationError


def json_response(body, status=200):
    return {'status': status, 'body': body}


def error_response(error: SchedulingError):
    body = {'error': error.message, 'code': error.code}
    if isinstance(error, ValidationError) and error.details:
        body['details'] = error.details
    return json_response(body, status=error.status)


def server_error_response():
    return json_response({'error': 'Internal server error', 'code': 'INTERNAL_ERROR'}, status=500)


def handles_errors(func):
    """Turn known errors into error responses; log and 500 anything else."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConflictError as e:
            logging.warning(f"{func.__name__}: conflict: {e}")
            return error_response(e)
        except SchedulingError as e:
            logging.warning(f"{func.__name__}: {e.code}: {e}")
            return error_response(e)
        except Exception:
            logging.exception(f"Error in {func.__name__}")
            return server_error_response()
    return wrapper
