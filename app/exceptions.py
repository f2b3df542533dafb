"""Business errors raised by the workflow services and mapped to HTTP in main.py"""


class WorkflowError(Exception):
    status_code = 400
    error = "workflow_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkflowError):
    """Bad enum value or missing required field"""

    status_code = 400
    error = "validation_error"


class NotFoundError(WorkflowError):
    status_code = 404
    error = "not_found"


class ConflictError(WorkflowError):
    """Slot already held, or an appointment already exists for the request"""

    status_code = 409
    error = "conflict"


class InvalidStateError(WorkflowError):
    """Action not permitted from the current status"""

    status_code = 400
    error = "invalid_state"


class StorageError(WorkflowError):
    """The blob-storage collaborator failed"""

    status_code = 502
    error = "storage_error"
