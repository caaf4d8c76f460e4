from textwrap import dedent
from typing import Self

import yaml
from pydantic import BaseModel, Field


class PromptSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The level of the section.")
    section: str = Field(description="The section of the prompt.")

    def render_text(self) -> str:
        return f"{'#' * self.level} {self.title}\n{self.section}"


EXPERT_DEVELOPER = PromptSection(
    title="Who you are",
    section="""
You are an expert software developer. You generate simple, working code with clear setup instructions.
""",
)

EXPERT_REVIEWER = PromptSection(
    title="Who you are",
    section="""
You are an expert code reviewer who identifies bugs, potential errors, and security vulnerabilities in code.
""",
)

JSON_ONLY = PromptSection(
    title="Response Format",
    section="""
You MUST respond with ONLY valid JSON. No markdown, no code blocks, no extra text.
""",
)

MARKDOWN_RESPONSE = PromptSection(
    title="Response Format",
    section="""
Your entire response will be shown directly to the user. Respond in markdown, begin with the review itself and do not
acknowledge the task.
""",
)


class PromptBuilder(BaseModel):
    sections: list[PromptSection] = Field(default_factory=list, description="The sections of the prompt.")

    def add_text_section(self, title: str, text: str | list[str], level: int = 1) -> Self:
        if not isinstance(text, list):
            text = [text]

        text_block = "\n".join([dedent(text) for text in text])

        self.sections.append(PromptSection(title=title, level=level, section=text_block))

        return self

    def add_code_section(self, title: str, code: str, language: str, level: int = 1) -> Self:
        code_block = f"```{language}\n{code}\n```"

        self.sections.append(PromptSection(title=title, level=level, section=code_block))

        return self

    def add_yaml_section(self, title: str, obj: dict | BaseModel, preamble: str | None = None, level: int = 1) -> Self:
        data = obj.model_dump(exclude_none=True) if isinstance(obj, BaseModel) else obj

        yaml_block: str = preamble or ""

        yaml_block += f"""
```yaml
{yaml.safe_dump(data, sort_keys=False).strip()}
```"""

        self.sections.append(PromptSection(title=title, level=level, section=yaml_block))

        return self

    def add_prompt_section(self, section: PromptSection) -> Self:
        self.sections.append(section)
        return self

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections)
