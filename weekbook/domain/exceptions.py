"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(DomainException):
    """Inbound data is malformed or out of range"""

    pass


class UnauthenticatedError(DomainException):
    """No authenticated actor was supplied"""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(DomainException):
    """Actor is authenticated but lacks the role or ownership required"""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ConflictError(DomainException):
    """Operation would break an invariant (second active book, delete with dependents)"""

    pass


class StateError(DomainException):
    """Operation is not allowed in the entity's current lifecycle state"""

    pass


class RangeError(DomainException):
    """Date falls outside the owning book's window"""

    pass
