"""Error types raised by cirrus."""

from typing import Optional


class CirrusError(Exception):
    """Base class for all cirrus errors."""
    pass


class SpecValidationError(CirrusError):
    """Desired server spec is malformed or changes an immutable field."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid field '{field}': {message}")


class ProviderError(CirrusError):
    """Remote API call failed."""

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"{operation} failed ({status_code}): {message}")
        else:
            super().__init__(f"{operation} failed: {message}")


class ServerNotFoundError(ProviderError):
    """Server does not exist on the provider side."""

    def __init__(self, operation: str, server_id: str):
        self.server_id = server_id
        super().__init__(operation, f"server {server_id} not found", status_code=404)


class WaitTimeoutError(CirrusError):
    """Polled attribute did not reach its target in time."""

    def __init__(self, resource_id: str, attribute: str, target: str, elapsed: float):
        self.resource_id = resource_id
        self.attribute = attribute
        self.target = target
        self.elapsed = elapsed
        super().__init__(
            f"Timeout after {elapsed:.1f}s waiting for server {resource_id} "
            f"to have {attribute} of {target}"
        )


class WaitCancelledError(CirrusError):
    """Wait was cancelled by the caller before convergence."""

    def __init__(self, resource_id: str, attribute: str, target: str):
        self.resource_id = resource_id
        self.attribute = attribute
        self.target = target
        super().__init__(
            f"Cancelled while waiting for server {resource_id} to have {attribute} of {target}"
        )


class OperationFailedError(CirrusError):
    """Lifecycle operation failed after reaching the provider."""

    operation = "operation"

    def __init__(self, server_id: Optional[str], reason: Exception):
        self.server_id = server_id
        self.reason = reason
        super().__init__(f"Error during {self.operation} of server {server_id}: {reason}")


class CreateFailedError(OperationFailedError):
    """Server was created but did not become ready."""
    operation = "create"


class UpdateFailedError(OperationFailedError):
    """Server state change failed or did not converge."""
    operation = "update"


class DeleteFailedError(OperationFailedError):
    """Server could not be deleted."""
    operation = "delete"
