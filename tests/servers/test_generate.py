import pytest
from dirty_equals import IsStr

from code_assistant_mcp.clients.errors.models import ModelResponseError
from code_assistant_mcp.servers.generate import CodeGeneratorServer
from code_assistant_mcp.servers.shared.errors import MissingParametersError
from tests.conftest import FakeModelClient, generated_project_response


async def test_generate_code():
    model_client = FakeModelClient(responses=[generated_project_response()])
    server = CodeGeneratorServer(model_client=model_client)

    project = await server.generate_code(description="a todo app", language="javascript", framework="react", include_tests=True)

    assert project.project_name == "todo-app"
    assert project.summary.total_files == 4
    assert project.summary.has_tests is True
    assert project.setup_instructions.install_commands == ["npm install"]
    assert [child.name for child in project.file_structure.children] == ["README.md", "package.json", "src"]

    call = model_client.calls[0]
    assert call.action == "Generate code"
    assert call.settings.json_response is True
    assert call.settings.temperature == 0.3
    assert "description: a todo app" in call.prompt
    assert "framework: react" in call.prompt
    assert "tests: Include unit tests" in call.prompt
    assert call.settings.system_instruction == IsStr(regex=r"(?s).*JSON.*")


async def test_generate_code_fenced_response():
    model_client = FakeModelClient(responses=["```json\n" + '{"projectName": "calc", "files": [{"path": "README.md", "content": ""}]}' + "\n```"])
    server = CodeGeneratorServer(model_client=model_client)

    project = await server.generate_code(description="a calculator")

    assert project.project_name == "calc"
    assert project.summary.language == "javascript"
    assert project.summary.has_tests is False


async def test_generate_code_malformed_response():
    model_client = FakeModelClient(responses=['{"projectName": "calc", "files": [{"path": "README.md", "content": "'])
    server = CodeGeneratorServer(model_client=model_client)

    with pytest.raises(ModelResponseError, match="The model returned malformed JSON"):
        _ = await server.generate_code(description="a calculator")


async def test_generate_code_empty_response():
    server = CodeGeneratorServer(model_client=FakeModelClient(responses=["  "]))

    with pytest.raises(ModelResponseError, match="empty response"):
        _ = await server.generate_code(description="a calculator")


async def test_generate_code_missing_description():
    model_client = FakeModelClient()
    server = CodeGeneratorServer(model_client=model_client)

    with pytest.raises(MissingParametersError, match="Missing required parameters: description"):
        _ = await server.generate_code(description=" ")

    assert model_client.calls == []
