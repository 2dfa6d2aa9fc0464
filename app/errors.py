# app/errors.py
# Domain errors raised by the service layer and mapped to HTTP in main.py
from typing import Optional


class ElectionError(Exception):
    status_code = 500
    public_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(ElectionError):
    status_code = 400
    public_message = "Invalid request"


class NotFoundError(ElectionError):
    status_code = 404
    public_message = "Not found"


class AlreadyVotedError(ElectionError):
    status_code = 403
    public_message = "This voter has already voted."


class StoreFailure(ElectionError):
    """Any persistence error. The message is logged, never returned to clients."""
    status_code = 500
    public_message = "Internal Server Error"


class SimulationError(StoreFailure):
    public_message = "Election simulation failed"

    def __init__(self, message: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
