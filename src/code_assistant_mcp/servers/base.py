from logging import Logger

from fastmcp.utilities.logging import get_logger

from code_assistant_mcp.clients.models import ModelClient, get_model_client


class ModelServer:
    """A tool server backed by a hosted language model."""

    model_client: ModelClient
    logger: Logger

    def __init__(self, model_client: ModelClient | None = None, logger: Logger | None = None):
        self.model_client = model_client or get_model_client()
        self.logger = logger or get_logger(name=__name__)
