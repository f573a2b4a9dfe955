"""Authentication and authorization error types."""


class AuthenticationError(Exception):
    """Raised when a protected operation is attempted without a valid credential."""

    def __init__(self, message: str = "Authentication required") -> None:
        self.message = message
        super().__init__(message)


class OwnershipError(Exception):
    """Raised when an authenticated principal mutates a resource it does not own."""

    def __init__(self, user_id: str, resource: str, resource_id: str) -> None:
        self.user_id = user_id
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"User '{user_id}' does not own {resource} '{resource_id}'")
