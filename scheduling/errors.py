"""
Error taxonomy shared by the scheduling core, the store and the handlers.

The core only ever raises ValidationError. NotFound, ownership and conflict
errors come from the caller layer (database/ and handlers/).
"""


class SchedulingError(Exception):
    code = 'ERROR'
    status = 500

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(SchedulingError):
    code = 'VALIDATION_ERROR'
    status = 400

    def __init__(self, message, code=None, field=None, value=None):
        super().__init__(message, code)
        self.field = field
        self.value = value

    @property
    def details(self):
        if self.field is None:
            return None
        return {'field': self.field, 'value': self.value}


class NotFoundError(SchedulingError):
    code = 'NOT_FOUND'
    status = 404


class OwnershipError(SchedulingError):
    code = 'FORBIDDEN'
    status = 403


class ConflictError(SchedulingError):
    """Row changed since it was read. Re-read and retry."""
    code = 'CONFLICT'
    status = 409
