class DomainError(Exception):
    """Base class for errors surfaced to API clients with a stable kind."""

    kind = 'error'
    status_code = 400
    default_message = 'Request could not be processed.'

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors or {}
        super().__init__(self.message)

    def as_dict(self):
        payload = {'status': 'error', 'kind': self.kind, 'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class NotFound(DomainError):
    kind = 'not_found'
    status_code = 404
    default_message = 'Not found.'


class Forbidden(DomainError):
    kind = 'forbidden'
    status_code = 403
    default_message = 'Not authorized.'


class InvalidTransition(DomainError):
    kind = 'invalid_transition'
    default_message = 'This status change is not allowed.'


class Conflict(DomainError):
    kind = 'conflict'
    default_message = 'The request conflicts with the current state.'


class AlreadyBooked(Conflict):
    kind = 'already_booked'
    default_message = 'already booked'


class ValidationError(DomainError):
    kind = 'validation_error'
    default_message = 'Invalid input.'

    @classmethod
    def from_form(cls, form):
        errors = {field: [str(e) for e in errs] for field, errs in form.errors.items()}
        first = next(iter(errors.values()), [cls.default_message])[0]
        return cls(first, errors=errors)
