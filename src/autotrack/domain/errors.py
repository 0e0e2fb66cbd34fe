class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class RemoteStoreError(AppError):
    """The remote row store rejected a request or could not be reached."""


class SessionStoreError(AppError):
    pass


class AuthorizationError(AppError):
    pass
