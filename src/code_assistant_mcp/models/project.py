from pathlib import PurePosixPath
from typing import Literal, Self

from pydantic import Field, field_validator

from code_assistant_mcp.models.base import CamelModel


class ProjectFile(CamelModel):
    """A file of a generated project."""

    path: str = Field(description="The path of the file, relative to the project root, using `/` separators.")
    content: str = Field(description="The full content of the file.")
    description: str = Field(default="", description="A short description of the file.")


class ProjectPayload(CamelModel):
    """A generated code tree: a project name and its files."""

    project_name: str = Field(min_length=1, description="The name of the project, used as its directory name.")
    files: list[ProjectFile] = Field(description="The files of the project.")

    def file_paths(self) -> list[str]:
        return [file.path for file in self.files]


class FileTreeNode(CamelModel):
    """A node of a project's file tree."""

    type: Literal["directory", "file"]
    name: str
    children: list["FileTreeNode"] = Field(default_factory=list)

    @classmethod
    def from_paths(cls, paths: list[str]) -> Self:
        """Build a nested tree rooted at a node named `root`. Children keep the order paths were first seen."""

        root = cls(type="directory", name="root")

        for path in paths:
            parts: list[str] = [part for part in path.split("/") if part]

            if not parts:
                continue

            node: FileTreeNode = root
            for directory_name in parts[:-1]:
                node = node.get_or_add_directory(directory_name)

            node.children.append(FileTreeNode(type="file", name=parts[-1]))

        return root

    def get_or_add_directory(self, name: str) -> "FileTreeNode":
        for child in self.children:
            if child.type == "directory" and child.name == name:
                return child

        directory = FileTreeNode(type="directory", name=name)
        self.children.append(directory)
        return directory


class SetupInstructions(CamelModel):
    prerequisites: list[str] = Field(default_factory=list)
    install_commands: list[str] = Field(default_factory=list)
    run_commands: list[str] = Field(default_factory=list)
    test_commands: list[str] = Field(default_factory=list)
    environment_variables: list[str] = Field(default_factory=list)


class ProjectSummary(CamelModel):
    total_files: int
    language: str
    framework: str | None = None
    has_tests: bool = False


# Model output


class GeneratedFile(CamelModel):
    path: str = Field(min_length=1, description="The path of the file relative to the project root.")
    content: str = Field(description="The file content, with newlines escaped as \\n.")

    @field_validator("path")
    @classmethod
    def normalize_path(cls, value: str) -> str:
        return PurePosixPath(value.replace("\\", "/")).as_posix()


class GeneratedSetup(CamelModel):
    install: list[str] = Field(default_factory=list, description="Commands that install dependencies.")
    run: list[str] = Field(default_factory=list, description="Commands that run the project.")
    test: list[str] = Field(default_factory=list, description="Commands that run the tests.")


class GeneratedProjectResponse(CamelModel):
    """A complete project produced by the model."""

    project_name: str = Field(min_length=1, description="The project name, in kebab-case.")
    files: list[GeneratedFile] = Field(min_length=1, description="The files of the project. README.md comes first.")
    setup: GeneratedSetup = Field(default_factory=GeneratedSetup, description="How to install, run, and test the project.")
    notes: str = Field(default="", description="Brief setup notes.")


class GeneratedProject(ProjectPayload):
    """The result of the code generator."""

    success: bool = True
    file_structure: FileTreeNode
    setup_instructions: SetupInstructions
    additional_notes: str = ""
    summary: ProjectSummary

    @classmethod
    def from_response(
        cls, response: GeneratedProjectResponse, language: str, framework: str | None = None, include_tests: bool = False
    ) -> Self:
        files: list[ProjectFile] = [ProjectFile(path=file.path, content=file.content) for file in response.files]

        prerequisites: list[str] = [language]
        if framework:
            prerequisites.append(framework)

        return cls(
            project_name=response.project_name,
            files=files,
            file_structure=FileTreeNode.from_paths([file.path for file in files]),
            setup_instructions=SetupInstructions(
                prerequisites=prerequisites,
                install_commands=response.setup.install,
                run_commands=response.setup.run,
                test_commands=response.setup.test,
            ),
            additional_notes=response.notes,
            summary=ProjectSummary(total_files=len(files), language=language, framework=framework, has_tests=include_tests),
        )
