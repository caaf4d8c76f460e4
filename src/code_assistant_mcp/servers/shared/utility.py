import base64


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens for a given text."""
    return len(text) // 4


def encode_content(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def count_lines(text: str) -> int:
    return len(text.split("\n"))
