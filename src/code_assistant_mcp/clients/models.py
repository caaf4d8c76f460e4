import os
from abc import ABC, abstractmethod
from logging import Logger
from typing import Any, TypeVar

from fastmcp.utilities.logging import get_logger
from google.genai import Client as GoogleGenaiClient
from google.genai.errors import APIError as GoogleGenaiAPIError
from google.genai.types import Candidate, GenerateContentConfig, GenerateContentResponse
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field
from typing_extensions import override

from code_assistant_mcp.clients.errors.base import MissingConfigurationError, RequestError
from code_assistant_mcp.clients.errors.models import ModelResponseError
from code_assistant_mcp.sampling.extract import ALLOWED_TYPES, StructuredResponseError, extract_single_object_from_text
from code_assistant_mcp.servers.shared.utility import estimate_tokens

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "gpt-4o"

GEMINI_API_KEY_VARIABLES = ("GEMINI_API_KEY", "GOOGLE_API_KEY")
OPENAI_API_KEY_VARIABLES = ("OPENAI_API_KEY",)

logger = get_logger(__name__)

T = TypeVar("T", bound=ALLOWED_TYPES)


def get_gemini_api_key() -> str:
    for env_var in GEMINI_API_KEY_VARIABLES:
        if os.environ.get(env_var):
            return os.environ[env_var]

    raise MissingConfigurationError(variables=GEMINI_API_KEY_VARIABLES, purpose="call the Gemini API")


def get_openai_api_key() -> str:
    for env_var in OPENAI_API_KEY_VARIABLES:
        if os.environ.get(env_var):
            return os.environ[env_var]

    raise MissingConfigurationError(variables=OPENAI_API_KEY_VARIABLES, purpose="call the OpenAI API")


class GenerationSettings(BaseModel):
    """Generation parameters passed along with a prompt."""

    system_instruction: str | None = Field(default=None, description="The system instruction for the model.")
    temperature: float = Field(default=0.3, description="The sampling temperature.")
    top_k: int | None = Field(default=None, description="Top-k sampling. Ignored by providers that do not support it.")
    top_p: float | None = Field(default=None, description="Nucleus sampling probability mass.")
    max_output_tokens: int | None = Field(default=None, description="The maximum number of tokens to generate.")
    json_response: bool = Field(default=False, description="Whether to ask the provider for a JSON response.")


class ModelClient(ABC):
    """A text-completion client for a hosted language model."""

    default_model: str
    logger: Logger

    @abstractmethod
    async def _generate(self, prompt: str, settings: GenerationSettings, action: str) -> str | None: ...

    async def generate_text(self, prompt: str, settings: GenerationSettings, action: str = "Generate text") -> str:
        """Generate prose from a prompt.

        Raises:
            MissingConfigurationError: If the provider credentials are not configured.
            RequestError: If the provider rejects the request.
            ModelResponseError: If the provider returns no text.
        """

        self.logger.info(f"{action}: sending a prompt of {estimate_tokens(prompt)} tokens to {self.default_model}.")

        text: str | None = await self._generate(prompt=prompt, settings=settings, action=action)

        if not text or not text.strip():
            raise ModelResponseError(action=action, message="The model returned an empty response.")

        self.logger.info(f"{action}: response was {estimate_tokens(text)} tokens.")

        return text

    async def generate_object(
        self, prompt: str, response_model: type[T], settings: GenerationSettings, action: str = "Generate object"
    ) -> T:
        """Generate a response and decode it strictly into `response_model`."""

        text: str = await self.generate_text(prompt=prompt, settings=settings, action=action)

        try:
            return extract_single_object_from_text(text, object_type=response_model)
        except StructuredResponseError as e:
            self.logger.warning(f"{action}: could not decode the model response: {e}")
            raise ModelResponseError(action=action, message=f"The model returned malformed JSON. {e}") from e


class GeminiModelClient(ModelClient):
    def __init__(self, default_model: str | None = None, client: GoogleGenaiClient | None = None, logger: Logger | None = None):
        self.default_model = default_model or os.getenv("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL
        self.logger = logger or get_logger(__name__)
        self._client: GoogleGenaiClient | None = client

    @property
    def client(self) -> GoogleGenaiClient:
        if self._client is None:
            self._client = GoogleGenaiClient(api_key=get_gemini_api_key())

        return self._client

    @override
    async def _generate(self, prompt: str, settings: GenerationSettings, action: str) -> str | None:
        try:
            response: GenerateContentResponse = await self.client.aio.models.generate_content(
                model=self.default_model,
                contents=prompt,
                config=GenerateContentConfig(
                    system_instruction=settings.system_instruction,
                    temperature=settings.temperature,
                    top_k=settings.top_k,
                    top_p=settings.top_p,
                    max_output_tokens=settings.max_output_tokens,
                    response_mime_type="application/json" if settings.json_response else None,
                ),
            )
        except GoogleGenaiAPIError as e:
            self.logger.exception(f"{action}: the Gemini API rejected the request.")
            raise RequestError(action=action, message=str(e)) from e

        if not (text := response.text):
            finish_reason = candidate.finish_reason if (candidate := get_candidate_from_response(response)) else None
            raise ModelResponseError(action=action, message=f"No content in response from completion: {finish_reason}")

        return text


def get_candidate_from_response(response: GenerateContentResponse) -> Candidate | None:
    if response.candidates and response.candidates[0]:
        return response.candidates[0]

    return None


class OpenAIModelClient(ModelClient):
    def __init__(self, default_model: str | None = None, client: AsyncOpenAI | None = None, logger: Logger | None = None):
        self.default_model = default_model or os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL
        self.logger = logger or get_logger(__name__)
        self._client: AsyncOpenAI | None = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=get_openai_api_key(), base_url=os.getenv("OPENAI_BASE_URL"))

        return self._client

    @override
    async def _generate(self, prompt: str, settings: GenerationSettings, action: str) -> str | None:
        messages: list[dict[str, str]] = []

        if settings.system_instruction:
            messages.append({"role": "system", "content": settings.system_instruction})

        messages.append({"role": "user", "content": prompt})

        request_args: dict[str, Any] = {"temperature": settings.temperature}

        if settings.top_p is not None:
            request_args["top_p"] = settings.top_p

        if settings.max_output_tokens is not None:
            request_args["max_tokens"] = settings.max_output_tokens

        if settings.json_response:
            request_args["response_format"] = {"type": "json_object"}

        try:
            completion = await self.client.chat.completions.create(
                model=self.default_model,
                messages=messages,  # pyright: ignore[reportArgumentType]
                **request_args,  # pyright: ignore[reportAny]
            )
        except OpenAIError as e:
            self.logger.exception(f"{action}: the OpenAI API rejected the request.")
            raise RequestError(action=action, message=str(e)) from e

        if not completion.choices:
            return None

        return completion.choices[0].message.content


def get_model_client() -> ModelClient:
    """Pick the model provider from the environment. Gemini is preferred when both are configured."""

    if any(os.getenv(env_var) for env_var in GEMINI_API_KEY_VARIABLES):
        return GeminiModelClient()

    if any(os.getenv(env_var) for env_var in OPENAI_API_KEY_VARIABLES):
        return OpenAIModelClient()

    logger.warning(
        msg=(
            "No model API key found, requests that need the language model will fail. "
            "Set GEMINI_API_KEY (or GOOGLE_API_KEY) or OPENAI_API_KEY to enable them."
        )
    )

    return GeminiModelClient()
