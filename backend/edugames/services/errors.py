class ServiceError(Exception):
    """A failure with a stable error code, rendered as ``{ok: false, error: code}``.

    Extra keyword arguments travel with the error and end up in the response
    body (for example ``best_stars``/``required_stars`` on a locked exit test).
    """

    status = 400

    def __init__(self, code, status=None, **extra):
        super().__init__(code)
        self.code = code
        if status is not None:
            self.status = status
        self.extra = extra

    def to_dict(self):
        body = {'ok': False, 'error': self.code}
        body.update(self.extra)
        return body


class ValidationError(ServiceError):
    status = 400


class AuthenticationError(ServiceError):
    status = 401


class GateError(ServiceError):
    status = 403


class NotFoundError(ServiceError):
    status = 404


class ConflictError(ServiceError):
    status = 409


class UpstreamError(ServiceError):
    status = 500
