"""Domain errors raised by the service layer and rendered by main.py"""


class HomeEaseError(Exception):
    """Base class for errors the caller should see as a distinct failure"""

    status_code = 400
    code = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class ValidationError(HomeEaseError):
    status_code = 400
    code = "validation_error"


class AuthorizationError(HomeEaseError):
    status_code = 403
    code = "not_permitted"

    def __init__(self, detail: str = "Not permitted"):
        super().__init__(detail)


class NotFoundError(HomeEaseError):
    status_code = 404
    code = "not_found"


class InvalidTransitionError(HomeEaseError):
    status_code = 409
    code = "invalid_transition"

    def __init__(self, current: str, target: str, kind: str = "status"):
        super().__init__(f"Cannot change booking {kind} from '{current}' to '{target}'")
        self.current = current
        self.target = target


class ConflictError(HomeEaseError):
    status_code = 409
    code = "conflict"


class PreconditionError(HomeEaseError):
    status_code = 412
    code = "precondition_failed"
