class StorageError(Exception):
    """Base class for errors surfaced to API clients.

    ``message`` is what the client sees; anything more specific belongs in
    the server log.
    """

    status_code = 500
    message = "Internal server error."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(StorageError):
    # Same text for a bad key, a bad token and an expired URL
    status_code = 401
    message = "Unauthorized."


class NotFound(StorageError):
    status_code = 404
    message = "File not found or access denied."


class BadRequest(StorageError):
    status_code = 400
    message = "Bad request."


class InvalidUpload(BadRequest):
    message = "Invalid upload."


class Conflict(StorageError):
    status_code = 409
    message = "Resource already exists."


class Internal(StorageError):
    status_code = 500
    message = "Internal server error."
