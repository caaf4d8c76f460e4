from code_assistant_mcp.clients.errors.base import ExtraInfoType, RequestError


class ResourceNotFoundError(RequestError):
    """A not found error from the GitHub client."""

    def __init__(self, action: str, resource: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(
            action=action,
            message="The resource could not be found.",
            extra_info={"resource": resource, **extra_info},
        )


class PermissionDeniedError(RequestError):
    """The GitHub token was rejected or lacks the permission required for the action."""

    def __init__(self, action: str, resource: str | None = None, message: str | None = None):
        super().__init__(
            action=action,
            message=message or "The GitHub token is not authorized for this resource.",
            extra_info={"resource": resource},
        )
