from typing import Annotated

from fastmcp.tools.tool_transform import ArgTransform
from pydantic import Field

DESCRIPTION_DESCRIPTION = "What the project should do."
DESCRIPTION = Annotated[str, Field(description=DESCRIPTION_DESCRIPTION)]

LANGUAGE_DESCRIPTION = "The programming language, for example `javascript` or `python`."
LANGUAGE = Annotated[str, Field(description=LANGUAGE_DESCRIPTION)]

FRAMEWORK_DESCRIPTION = "The framework to use or that the code uses, for example `react` or `fastapi`."
FRAMEWORK = Annotated[str | None, Field(description=FRAMEWORK_DESCRIPTION)]

INCLUDE_TESTS_DESCRIPTION = "Whether to include unit tests in the generated project."
INCLUDE_TESTS = Annotated[bool, Field(description=INCLUDE_TESTS_DESCRIPTION)]
INCLUDE_TESTS_ARG_TRANSFORM = ArgTransform(name="includeTests", description=INCLUDE_TESTS_DESCRIPTION)

CODE_DESCRIPTION = "The source code to analyze."
CODE = Annotated[str, Field(description=CODE_DESCRIPTION)]
OPTIONAL_CODE = Annotated[str | None, Field(description=CODE_DESCRIPTION)]

ROOT_DIRECTORY_DESCRIPTION = "The directory `fileName` is relative to. Defaults to the server's working directory."
ROOT_DIRECTORY = Annotated[str | None, Field(description=ROOT_DIRECTORY_DESCRIPTION)]
ROOT_DIRECTORY_ARG_TRANSFORM = ArgTransform(name="rootDirectory", description=ROOT_DIRECTORY_DESCRIPTION)

FILE_NAME_DESCRIPTION = "The file to read the code from. Used when `code` is not provided."
FILE_NAME = Annotated[str | None, Field(description=FILE_NAME_DESCRIPTION)]
FILE_NAME_ARG_TRANSFORM = ArgTransform(name="fileName", description=FILE_NAME_DESCRIPTION)

STRICT_MODE_DESCRIPTION = "Whether to report every deviation from best practices, including minor ones."
STRICT_MODE = Annotated[bool, Field(description=STRICT_MODE_DESCRIPTION)]
STRICT_MODE_ARG_TRANSFORM = ArgTransform(name="strictMode", description=STRICT_MODE_DESCRIPTION)

LOCAL_PATH_DESCRIPTION = "The local directory to commit."
LOCAL_PATH = Annotated[str, Field(description=LOCAL_PATH_DESCRIPTION)]
LOCAL_PATH_ARG_TRANSFORM = ArgTransform(name="localPath", description=LOCAL_PATH_DESCRIPTION)

OWNER_DESCRIPTION = "The owner of the repository. Defaults to GITHUB_OWNER, then to the authenticated user."
OWNER = Annotated[str | None, Field(description=OWNER_DESCRIPTION)]

REPO_DESCRIPTION = "The name of the repository."
REPO = Annotated[str, Field(description=REPO_DESCRIPTION)]

BRANCH_DESCRIPTION = "The branch to commit to. Created from the default branch if it does not exist."
BRANCH = Annotated[str, Field(description=BRANCH_DESCRIPTION)]

MESSAGE_DESCRIPTION = "The commit message. Defaults to `Auto-commit: <timestamp>`."
MESSAGE = Annotated[str | None, Field(description=MESSAGE_DESCRIPTION)]
