"""
Engine-wide exception hierarchy.

Every service raises these types so callers (CLI commands, a rendering
layer, tests) handle failures in one place instead of importing ad-hoc
exception classes from individual service modules.

Usage:
    from portal.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id="p1")
    raise ValidationError("Project name is required", details={"name": "required"})

Propagation:
    NotFoundError, ValidationError, ConflictError, AuthError and
    PermissionDenied reach the caller and block the operation.
    PersistenceWarning never leaves the persistence adapter; it is caught
    there and logged.
"""


class NotFoundError(Exception):
    """Raised when a requested entity does not exist within the actor's scope.

    Security note: Used for BOTH genuinely missing records AND projects that
    exist but sit outside a CLIENT actor's organization.  A distinct
    "forbidden" error would confirm the project exists.

    Args:
        resource: Human-readable entity name (e.g. "Project", "ApprovalItem").
        resource_id: The id that was looked up.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a record fails a required-field or relationship rule on save.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown.  Keys are field names;
                 values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConflictError(ValidationError):
    """Raised when a save or delete would break a uniqueness or ownership rule.

    Args:
        resource: Entity name.
        field: The field carrying the conflict.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(
            f"{resource} with {field}={value!r} conflicts with existing data",
            details={field: "conflict"},
        )


class AuthError(Exception):
    """Raised when credentials do not authenticate an actor.

    The message is the same for an unknown email and a wrong secret.
    """

    def __init__(self, message: str = "Invalid email or password") -> None:
        self.message = message
        super().__init__(message)


class PermissionDenied(Exception):
    """Raised when an actor's role does not allow an operation."""

    def __init__(self, actor_id: str, action: str) -> None:
        super().__init__(f"Actor {actor_id} does not have permission for '{action}'")
        self.actor_id = actor_id
        self.action = action


class PersistenceWarning(Exception):
    """Durable read/write failure.  Non-fatal; logged at the adapter boundary.

    Args:
        key: The durable key involved.
        operation: "load" or "save".
        reason: Short description of the underlying failure.
    """

    def __init__(self, key: str, operation: str, reason: str) -> None:
        self.key = key
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} of {key!r} failed: {reason}")
