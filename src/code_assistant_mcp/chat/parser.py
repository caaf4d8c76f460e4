import re
from pathlib import Path
from typing import Any

from code_assistant_mcp.servers.shared.tools import (
    CHECK_BEST_PRACTICES,
    DETECT_BUGS,
    GENERATE_CODE,
    GITHUB_COMMIT,
    TOOL_SPECS,
    ToolSpec,
)

DEFAULT_LANGUAGE = "javascript"
DEFAULT_BRANCH = "main"

BUG_PHRASES = ("detect", "bugs", "bug", "find issues", "find errors", "analyze", "check bugs", "scan")
FILE_PHRASES = ("file:", "filename:", "in this code", "in my code", "in the code")
GENERATE_VERBS = ("generate", "create", "build", "make")

PRIORITY_PHRASES: list[tuple[str, str]] = [
    ("best practices", CHECK_BEST_PRACTICES),
    ("code quality", CHECK_BEST_PRACTICES),
    ("review code", CHECK_BEST_PRACTICES),
    ("check code", CHECK_BEST_PRACTICES),
    ("github commit", GITHUB_COMMIT),
    ("git commit", GITHUB_COMMIT),
    ("push to github", GITHUB_COMMIT),
    ("push code", GITHUB_COMMIT),
    ("commit to", GITHUB_COMMIT),
]

# Checked in order, the first language with a matching alias wins.
LANGUAGE_ALIASES: dict[str, list[str]] = {
    "javascript": ["javascript", "js", "node", "nodejs"],
    "python": ["python", "py"],
    "typescript": ["typescript", "ts"],
    "java": ["java"],
    "go": ["golang", "go"],
    "rust": ["rust"],
    "cpp": ["c\\+\\+", "cpp"],
    "c": ["c language"],
    "ruby": ["ruby", "rb"],
    "php": ["php"],
}

FRAMEWORKS = ("react", "vue", "angular", "svelte", "express", "fastapi", "django", "flask", "nextjs", "nuxt", "nest")

SOURCE_EXTENSIONS = ("js", "ts", "py", "java", "go", "rs", "cpp", "c", "rb", "php", "jsx", "tsx")

EXPLICIT_LANGUAGE_PATTERN = re.compile(r"\blanguage\s*[:=]\s*([\w+#]+)", re.IGNORECASE)
FENCED_CODE_PATTERN = re.compile(r"```[\w+#-]*\n(.*?)```", re.DOTALL)
INLINE_FENCED_CODE_PATTERN = re.compile(r"```(.+?)```", re.DOTALL)
CODE_PATTERN = re.compile(r"\bcode\s*[:=]\s*(.+)", re.IGNORECASE | re.DOTALL)
FILE_PATTERN = re.compile(r"\b(?:file|filename)\s*[:=]\s*(\S+)", re.IGNORECASE)
PATH_WITH_EXTENSION_PATTERN = re.compile(r"(?:^|\s)((?:~|\.{1,2})?/\S+\.\w+)")
BARE_FILE_NAME_PATTERN = re.compile(r"\b[\w\-]+\.(?:" + "|".join(SOURCE_EXTENSIONS) + r")\b", re.IGNORECASE)
PATH_PATTERN = re.compile(r"\b(?:path|dir|directory|folder)\s*[:=]\s*(\S+)", re.IGNORECASE)
LOOSE_PATH_PATTERN = re.compile(r"(?:^|\s)((?:~|\.{1,2})?/[^\s]+)")
REPO_PATTERN = re.compile(r"\b(?:repo|repository)\s*[:=]\s*(\S+)", re.IGNORECASE)
OWNER_PATTERN = re.compile(r"\b(?:owner|user|username)\s*[:=]\s*(\S+)", re.IGNORECASE)
GITHUB_URL_PATTERN = re.compile(r"github\.com/([\w.-]+)/([\w.-]+)", re.IGNORECASE)
BRANCH_PATTERN = re.compile(r"\bbranch\s*[:=]\s*(\S+)", re.IGNORECASE)
MESSAGE_PATTERN = re.compile(r"\b(?:message|msg)\s*[:=]?\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
LANGUAGE_CLAUSE_PATTERN = re.compile(r"\s*\blanguage\s*[:=]?\s*[\w+#]+\s*", re.IGNORECASE)
GENERATE_PREFIX_PATTERN = re.compile(r"^\s*(?:please\s+)?(?:" + "|".join(GENERATE_VERBS) + r")\b\s*(?:me\s+)?", re.IGNORECASE)

TRAILING_PUNCTUATION = ",;."


def contains_word(text: str, word_pattern: str) -> bool:
    return re.search(rf"(?<![\w.+#-]){word_pattern}(?![\w+#])", text, re.IGNORECASE) is not None


class CommandParser:
    """Resolve a chat message to a tool and its parameters with keyword rules and regular expressions."""

    def parse_command(self, text: str) -> str | None:
        """Return the name of the tool `text` asks for, or None when no rule matches."""

        lower_text = text.lower()

        has_bug_intent = any(phrase in lower_text for phrase in BUG_PHRASES)
        has_file_intent = any(phrase in lower_text for phrase in FILE_PHRASES)
        has_generate_intent = any(verb in lower_text for verb in GENERATE_VERBS)

        # "Generate a bug tracker" is a generation request, "find bugs in file: x" is not.
        if (has_bug_intent or has_file_intent) and not has_generate_intent:
            return DETECT_BUGS

        for phrase, tool in PRIORITY_PHRASES:
            if phrase in lower_text:
                return tool

        if has_generate_intent:
            return GENERATE_CODE

        return None

    def extract_params(self, text: str, tool: str) -> dict[str, Any]:
        """Extract the parameters of `tool` from `text`. Parameters that cannot be found are left out."""

        params: dict[str, Any] = {}

        if tool == GENERATE_CODE:
            params["description"] = self.extract_description(text)
            params["language"] = self.extract_language(text) or DEFAULT_LANGUAGE
            if framework := self.extract_framework(text):
                params["framework"] = framework
            if re.search(r"\b(?:with|include|including)\s+(?:unit\s+)?tests\b", text, re.IGNORECASE):
                params["includeTests"] = True

        elif tool == DETECT_BUGS:
            params["language"] = self.extract_language(text) or DEFAULT_LANGUAGE
            if code := self.extract_code(text):
                params["code"] = code
            elif file_path := self.extract_file_path(text):
                params.update(split_file_path(file_path))

        elif tool == CHECK_BEST_PRACTICES:
            if code := self.extract_code(text):
                params["code"] = code
            params["language"] = self.extract_language(text) or DEFAULT_LANGUAGE
            if framework := self.extract_framework(text):
                params["framework"] = framework
            if re.search(r"\bstrict\b", text, re.IGNORECASE):
                params["strictMode"] = True

        elif tool == GITHUB_COMMIT:
            params["localPath"] = self.extract_path(text) or str(Path.cwd())
            if repo := self.extract_repo(text):
                params["repo"] = repo
            if owner := self.extract_owner(text):
                params["owner"] = owner
            params["branch"] = self.extract_branch(text) or DEFAULT_BRANCH
            if message := self.extract_commit_message(text):
                params["message"] = message

        return params

    def extract_description(self, text: str) -> str:
        return GENERATE_PREFIX_PATTERN.sub("", text).strip() or text.strip()

    def extract_language(self, text: str) -> str | None:
        if match := EXPLICIT_LANGUAGE_PATTERN.search(text):
            explicit: str = match.group(1).lower()
            for language, aliases in LANGUAGE_ALIASES.items():
                if explicit == language or any(re.fullmatch(alias, explicit) for alias in aliases):
                    return language
            return explicit

        for language, aliases in LANGUAGE_ALIASES.items():
            if any(contains_word(text, alias) for alias in aliases):
                return language

        return None

    def extract_framework(self, text: str) -> str | None:
        for framework in FRAMEWORKS:
            if contains_word(text, framework):
                return framework

        return None

    def extract_code(self, text: str) -> str | None:
        if match := FENCED_CODE_PATTERN.search(text):
            return match.group(1).strip()

        if match := INLINE_FENCED_CODE_PATTERN.search(text):
            return match.group(1).strip()

        if match := CODE_PATTERN.search(text):
            code: str = LANGUAGE_CLAUSE_PATTERN.sub(" ", match.group(1)).strip()
            return code or None

        return None

    def extract_file_path(self, text: str) -> str | None:
        cleaned: str = LANGUAGE_CLAUSE_PATTERN.sub(" ", text)

        if match := FILE_PATTERN.search(cleaned):
            return match.group(1).rstrip(TRAILING_PUNCTUATION)

        if match := PATH_WITH_EXTENSION_PATTERN.search(cleaned):
            return match.group(1).rstrip(TRAILING_PUNCTUATION)

        if match := BARE_FILE_NAME_PATTERN.search(cleaned):
            return match.group(0)

        return None

    def extract_path(self, text: str) -> str | None:
        if match := PATH_PATTERN.search(text):
            return match.group(1)

        if match := LOOSE_PATH_PATTERN.search(text):
            return match.group(1).rstrip(TRAILING_PUNCTUATION)

        return None

    def extract_repo(self, text: str) -> str | None:
        if match := REPO_PATTERN.search(text):
            return match.group(1)

        if match := GITHUB_URL_PATTERN.search(text):
            return match.group(2).removesuffix(".git")

        return None

    def extract_owner(self, text: str) -> str | None:
        if match := OWNER_PATTERN.search(text):
            return match.group(1)

        if match := GITHUB_URL_PATTERN.search(text):
            return match.group(1)

        return None

    def extract_branch(self, text: str) -> str | None:
        if match := BRANCH_PATTERN.search(text):
            return match.group(1)

        return None

    def extract_commit_message(self, text: str) -> str | None:
        if match := MESSAGE_PATTERN.search(text):
            return match.group(1)

        return None

    def validate_params(self, tool: str, params: dict[str, Any]) -> list[str]:
        """Return the required parameters of `tool` missing from `params`."""

        if spec := TOOL_SPECS.get(tool):
            return spec.missing_params(params)

        return []

    def get_tool_help(self, tool: str) -> ToolSpec | None:
        return TOOL_SPECS.get(tool)


def split_file_path(file_path: str) -> dict[str, str]:
    """Split a path into `rootDirectory` and `fileName`. A bare file name has no root directory."""

    normalized: str = file_path.replace("\\", "/")

    if "/" not in normalized:
        return {"fileName": normalized}

    root_directory, _, file_name = normalized.rpartition("/")

    return {"rootDirectory": root_directory or "/", "fileName": file_name}
