"""Domain errors raised by the stores and services.

Each error carries the HTTP status the API layer answers with, so routers
never translate them by hand.
"""


class PagesmithError(Exception):
    status_code = 500


class NotFoundError(PagesmithError):
    status_code = 404

    def __init__(self, entity: str, identifier: str):
        super().__init__(f"{entity} '{identifier}' not found")
        self.entity = entity
        self.identifier = identifier


class ConflictError(PagesmithError):
    status_code = 409


class ActiveVersionDeletionError(ConflictError):
    def __init__(self, version_id: str):
        super().__init__("Cannot delete the active version")
        self.version_id = version_id


class ValidationError(PagesmithError):
    status_code = 400


class TransactionFailure(PagesmithError):
    """A unit of work failed and was rolled back; nothing was written."""

    status_code = 500

    def __init__(self, operation: str = "transaction"):
        super().__init__(f"The {operation} failed and was rolled back")
        self.operation = operation
