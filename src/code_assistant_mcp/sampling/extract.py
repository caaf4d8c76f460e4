import json
from textwrap import dedent
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter

ALLOWED_TYPES = BaseModel | list[BaseModel]

T = TypeVar("T", bound=ALLOWED_TYPES)


class StructuredResponseError(ValueError):
    """The text does not hold exactly one JSON document of the expected shape."""


def object_in_text_instructions(object_type: type[T]) -> str:
    """Return instructions that ask the model to answer with a single object of `object_type`."""

    type_adapter: TypeAdapter[T] = TypeAdapter[T](object_type)
    json_schema: dict[str, Any] = type_adapter.json_schema(by_alias=True)

    return dedent(
        f"""
The only valid response to this request is a structured object of type {object_type.__name__}.

The schema for the object is:
```json
{json.dumps(obj=json_schema, indent=1)}
```

Respond with the JSON object only: no prose before or after it and at most one ```json block around it.
Escape quotes and newlines inside strings. Close every array, object, and string and do not leave trailing commas."""
    ).strip()


def extract_json_blocks_from_text(text: str) -> list[str]:
    """Extract all fenced blocks from a text string."""

    lines = text.strip().split("\n")

    start_index: int | None = None
    end_index: int | None = None

    matches: list[str] = []

    for i, line in enumerate(lines):
        if line.startswith("```") and start_index is None:
            start_index = i + 1
            continue
        if line.startswith("```") and start_index is not None and end_index is None:
            end_index = i

        if start_index is not None and end_index is not None:
            matches.append("\n".join(lines[start_index:end_index]))
            start_index = None
            end_index = None

    return matches


def extract_single_object_from_text(text: str, object_type: type[T]) -> T:
    """Decode `text` into `object_type`, failing closed.

    The text must either be a bare JSON document or contain exactly one fenced block, for example:
    ```json
    {"tool": "detect-bugs", "parameters": {}}
    ```

    Raises:
        StructuredResponseError: If the text holds more than one fenced block, or the JSON does not validate.
    """

    stripped: str = text.strip()

    if not stripped:
        msg = "The response was empty."
        raise StructuredResponseError(msg)

    matches: list[str] = extract_json_blocks_from_text(stripped)

    if len(matches) > 1:
        msg = f"Expected a single JSON document, received {len(matches)} fenced blocks."
        raise StructuredResponseError(msg)

    json_text: str = matches[0] if matches else stripped

    type_adapter: TypeAdapter[T] = TypeAdapter[T](object_type)

    try:
        return type_adapter.validate_json(json_text)
    except ValueError as e:
        msg = f"The response does not match {object_type.__name__}: {e}"
        raise StructuredResponseError(msg) from e
