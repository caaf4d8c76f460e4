from code_assistant_mcp.clients.errors.base import ClientError


class ModelResponseError(ClientError):
    """The language model returned no content or content that does not match the expected schema."""

    def __init__(self, action: str, message: str):
        super().__init__(message=f"{action}: {message}")
