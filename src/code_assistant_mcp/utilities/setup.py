import importlib.util
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from code_assistant_mcp.clients.github import GITHUB_TOKEN_VARIABLES
from code_assistant_mcp.clients.models import GEMINI_API_KEY_VARIABLES, OPENAI_API_KEY_VARIABLES

MINIMUM_PYTHON_VERSION = (3, 11)

# Values left over from a copied example `.env`.
PLACEHOLDER_VALUES = frozenset({"", "your_gemini_api_key_here", "your_github_token_here", "your_openai_api_key_here"})

REQUIRED_MODULES: dict[str, str] = {
    "fastmcp": "fastmcp",
    "google.genai": "google-genai",
    "githubkit": "githubkit",
    "fastapi": "fastapi",
    "uvicorn": "uvicorn",
}

CheckStatus = Literal["ok", "warning", "error"]


class SetupCheck(BaseModel):
    name: str
    status: CheckStatus
    detail: str


def is_configured(variables: tuple[str, ...]) -> bool:
    return any(os.getenv(variable, "") not in PLACEHOLDER_VALUES for variable in variables)


def check_python_version(version_info: tuple[int, ...] = tuple(sys.version_info[:3])) -> SetupCheck:
    version = ".".join(str(part) for part in version_info)

    if version_info[:2] >= MINIMUM_PYTHON_VERSION:
        return SetupCheck(name="Python version", status="ok", detail=f"Python {version}")

    required = ".".join(str(part) for part in MINIMUM_PYTHON_VERSION)

    return SetupCheck(name="Python version", status="error", detail=f"Python {version} (required: {required}+)")


def check_env_file(directory: Path) -> SetupCheck:
    if (directory / ".env").is_file():
        return SetupCheck(name=".env file", status="ok", detail=f"Found {directory / '.env'}")

    return SetupCheck(
        name=".env file",
        status="warning",
        detail="No .env file found, settings are read from the environment only",
    )


def check_model_key() -> SetupCheck:
    if is_configured(GEMINI_API_KEY_VARIABLES):
        return SetupCheck(name="Model API key", status="ok", detail="Gemini API key is set")

    if is_configured(OPENAI_API_KEY_VARIABLES):
        return SetupCheck(name="Model API key", status="ok", detail="OpenAI API key is set")

    return SetupCheck(
        name="Model API key",
        status="error",
        detail="Set GEMINI_API_KEY (get one at https://aistudio.google.com/apikey) or OPENAI_API_KEY",
    )


def check_github_token() -> SetupCheck:
    if is_configured(GITHUB_TOKEN_VARIABLES):
        return SetupCheck(name="GitHub token", status="ok", detail="GitHub token is set")

    return SetupCheck(
        name="GitHub token",
        status="warning",
        detail="GITHUB_TOKEN is not set, it is only needed by the github-commit tool (https://github.com/settings/tokens)",
    )


def is_installed(module: str) -> bool:
    try:
        return importlib.util.find_spec(module) is not None
    except ModuleNotFoundError:
        return False


def check_modules() -> list[SetupCheck]:
    checks: list[SetupCheck] = []

    for module, distribution in REQUIRED_MODULES.items():
        if not is_installed(module):
            checks.append(SetupCheck(name=distribution, status="error", detail=f"{distribution} is not installed"))
        else:
            checks.append(SetupCheck(name=distribution, status="ok", detail=f"{distribution} is installed"))

    return checks


def run_setup_checks(directory: Path) -> list[SetupCheck]:
    """Run every setup check. Environment variables must already be loaded."""

    return [
        check_python_version(),
        check_env_file(directory),
        check_model_key(),
        check_github_token(),
        *check_modules(),
    ]
