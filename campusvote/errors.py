"""Domain errors raised by services and mapped to HTTP responses in main.py."""


class CampusVoteError(Exception):
    """Base class for errors that terminate a request."""

    status_code = 400

    def __init__(self, message: str = "Request failed"):
        self.message = message
        super().__init__(self.message)


class NotFound(CampusVoteError):
    """Referenced entity is absent."""

    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class InvalidState(CampusVoteError):
    """Operation not valid given the current status, time or approval state."""

    status_code = 400


class Conflict(CampusVoteError):
    """Uniqueness violation."""

    status_code = 400


class Forbidden(CampusVoteError):
    """Visibility or authorization gate."""

    status_code = 403

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class Unauthorized(CampusVoteError):
    """Missing or invalid credentials."""

    status_code = 401
