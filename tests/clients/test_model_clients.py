import pytest
from pydantic import BaseModel

from code_assistant_mcp.clients.errors.base import MissingConfigurationError
from code_assistant_mcp.clients.errors.models import ModelResponseError
from code_assistant_mcp.clients.models import (
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
    GeminiModelClient,
    GenerationSettings,
    OpenAIModelClient,
    get_model_client,
)
from tests.conftest import FakeModelClient


class Greeting(BaseModel):
    text: str


def test_get_model_client_prefers_gemini(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")

    model_client = get_model_client()

    assert isinstance(model_client, GeminiModelClient)
    assert model_client.default_model == DEFAULT_GEMINI_MODEL


def test_get_model_client_openai(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")
    monkeypatch.delenv("OPENAI_MODEL", raising=False)

    model_client = get_model_client()

    assert isinstance(model_client, OpenAIModelClient)
    assert model_client.default_model == DEFAULT_OPENAI_MODEL


def test_get_model_client_model_override(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "gemini-key")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-pro")

    assert get_model_client().default_model == "gemini-2.5-pro"


async def test_missing_gemini_key_fails_fast():
    model_client = get_model_client()

    with pytest.raises(MissingConfigurationError, match="GEMINI_API_KEY or GOOGLE_API_KEY must be set to call the Gemini API"):
        _ = await model_client.generate_text(prompt="hello", settings=GenerationSettings())


async def test_missing_openai_key_fails_fast():
    model_client = OpenAIModelClient()

    with pytest.raises(MissingConfigurationError, match="OPENAI_API_KEY must be set"):
        _ = await model_client.generate_text(prompt="hello", settings=GenerationSettings())


async def test_generate_object():
    model_client = FakeModelClient(responses=['```json\n{"text": "hi"}\n```'])

    greeting = await model_client.generate_object(prompt="Say hi", response_model=Greeting, settings=GenerationSettings())

    assert greeting == Greeting(text="hi")


async def test_generate_object_malformed():
    model_client = FakeModelClient(responses=['{"text": '])

    with pytest.raises(ModelResponseError, match="Greet: The model returned malformed JSON"):
        _ = await model_client.generate_object(
            prompt="Say hi", response_model=Greeting, settings=GenerationSettings(), action="Greet"
        )
