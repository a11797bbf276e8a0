from fastapi import HTTPException

class InvalidInput(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class Forbidden(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=403, detail=detail)

class NotFound(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)

class InternalConsistency(HTTPException):
    """A stored row points at something the store cannot resolve."""

    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)

class UpstreamUnavailable(Exception):
    """Raised when the exchange-rate provider cannot be reached or answers garbage."""
