from collections.abc import Iterable

ExtraInfoType = dict[str, str | None]


class ClientError(Exception):
    """An error from one of the Code Assistant clients."""

    def __init__(self, message: str, extra_info: ExtraInfoType | None = None):
        msg = message
        if extra_info:
            msg += " (" + ", ".join([f"{key}: {value}" for key, value in extra_info.items() if value is not None]) + ")"
        super().__init__(msg)


class RequestError(ClientError):
    """A request to an external service failed."""

    def __init__(self, action: str, message: str | None = None, extra_info: ExtraInfoType | None = None):
        if not extra_info:
            extra_info = {}
        super().__init__(message="A request error occured.", extra_info={"action": action, "message": message, **extra_info})


class MissingConfigurationError(ClientError):
    """A credential or setting required to reach an external service is not configured."""

    def __init__(self, variables: Iterable[str], purpose: str):
        names = " or ".join(variables)
        super().__init__(message=f"{names} must be set to {purpose}.")
