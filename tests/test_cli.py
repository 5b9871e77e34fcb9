"""
Tests for the CLI interface.
"""
import json
import shutil
import subprocess
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import pytest
from typer.testing import CliRunner

from agent_skills.cli.common import EXIT_CODE_FAIL, EXIT_CODE_OK, timestamped_path
from agent_skills.cli.main import app
from agent_skills.cli.openai_image import numbered_paths
from agent_skills.clients.gemini import GeminiImage
from agent_skills.clients.jina import PageResult
from agent_skills.core.errors import ApiError, SkillError, UsageError
from agent_skills.devices.adb import AdbRunner
from agent_skills.sdk.openai_images import GeneratedImage
from agent_skills.storage.ledger import CostLedger

runner = CliRunner()


@pytest.fixture
def temp_dir():
    """Scratch directory for outputs and ledgers."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def linear_client():
    """Mock Linear client returned by get_client."""
    client = MagicMock()
    client.__enter__.return_value = client
    with patch('agent_skills.cli.linear.get_client', return_value=client):
        yield client


class RecordingRun:
    """subprocess.run stand-in that records adb invocations."""

    def __init__(self, stdout=""):
        self.calls = []
        self.stdout = stdout

    def __call__(self, args, capture_output=True, text=True, timeout=None):
        self.calls.append(args)
        return subprocess.CompletedProcess(args, 0, self.stdout, "")


@pytest.fixture
def adb_run():
    run = RecordingRun()
    adb_runner = AdbRunner(env={"ADB_SERIAL": "dev1"}, run=run)
    with patch('agent_skills.cli.adb.get_runner', return_value=adb_runner):
        yield run


def _timeout_env(temp_dir, **env):
    """Environment pointing at a settings file with http_timeout: 7."""
    config = temp_dir / "agent-skills.yaml"
    config.write_text("http_timeout: 7\n")
    return {"AGENT_SKILLS_CONFIG": str(config), **env}


class TestUmbrella:
    """Test the top-level app."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])
        assert result.exit_code == EXIT_CODE_OK
        assert "Agent skills - Use --help to see available commands" in result.output

    def test_help_lists_skills(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == EXIT_CODE_OK
        for name in ("adb", "browser", "jina", "linear", "nano-banana", "openai-image"):
            assert name in result.output


class TestJinaCommands:
    """Test search and read."""

    def test_search_requires_key(self):
        result = runner.invoke(app, ["jina", "search", "python"], env={"JINA_API_KEY": None})
        assert result.exit_code == EXIT_CODE_FAIL
        assert "JINA_API_KEY environment variable is required." in result.output
        assert "https://jina.ai/reader" in result.output

    @patch('agent_skills.cli.jina.JinaClient')
    def test_search_text_output(self, mock_client_class):
        mock_client_class.return_value.search.return_value = [
            PageResult("Python", "https://python.org", "line one\nline two"),
        ]

        result = runner.invoke(
            app, ["jina", "search", "python", "--site", "python.org"], env={"JINA_API_KEY": "k"}
        )

        assert result.exit_code == EXIT_CODE_OK
        assert "--- Result 1 ---" in result.output
        assert "Title: Python" in result.output
        assert "URL: https://python.org" in result.output
        assert "  line one\n  line two" in result.output
        mock_client_class.return_value.search.assert_called_once_with(
            "python", sites=["python.org"], as_json=False
        )

    @patch('agent_skills.cli.jina.JinaClient')
    def test_search_no_results(self, mock_client_class):
        mock_client_class.return_value.search.return_value = []
        result = runner.invoke(app, ["jina", "search", "zzz"], env={"JINA_API_KEY": "k"})
        assert "No results found." in result.output

    @patch('agent_skills.cli.jina.JinaClient')
    def test_search_json(self, mock_client_class):
        mock_client_class.return_value.search.return_value = [PageResult("T", "https://t.test", "c")]
        result = runner.invoke(app, ["jina", "search", "q", "--json"], env={"JINA_API_KEY": "k"})
        assert json.loads(result.output) == [{"title": "T", "url": "https://t.test", "content": "c"}]

    @patch('agent_skills.cli.jina.JinaClient')
    def test_read_without_key(self, mock_client_class):
        mock_client_class.return_value.read.return_value = "Title: T\nURL Source: https://t.test\n\nbody"

        result = runner.invoke(app, ["jina", "read", "https://t.test", "--json"], env={"JINA_API_KEY": None})

        assert result.exit_code == EXIT_CODE_OK
        assert json.loads(result.output) == {"title": "T", "url": "https://t.test", "content": "body"}
        mock_client_class.assert_called_once_with(api_key=None)

    @patch('agent_skills.cli.jina.JinaClient')
    def test_read_error(self, mock_client_class):
        mock_client_class.return_value.read.side_effect = ApiError("Request timeout")

        result = runner.invoke(app, ["jina", "read", "https://t.test"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error: Request timeout" in result.output

    @patch('agent_skills.cli.jina.JinaClient')
    def test_read_prints_markdown_verbatim(self, mock_client_class):
        page = "# Setup\n\n```go\nfunc main() {\n\tfmt.Println(1)\r\n}\n```"
        mock_client_class.return_value.read.return_value = page

        result = runner.invoke(app, ["jina", "read", "https://t.test"], env={"JINA_API_KEY": None})

        assert result.exit_code == EXIT_CODE_OK
        assert (page + "\n").encode() in result.stdout_bytes

    @patch('agent_skills.cli.jina.JinaClient')
    def test_search_uses_configured_timeout(self, mock_client_class, temp_dir):
        mock_client_class.return_value.search.return_value = []

        result = runner.invoke(app, ["jina", "search", "q"], env=_timeout_env(temp_dir, JINA_API_KEY="k"))

        assert result.exit_code == EXIT_CODE_OK
        mock_client_class.assert_called_once_with(api_key="k", timeout=7.0)


class TestNanoBananaCommands:
    """Test Gemini generation and cost tracking."""

    def test_invalid_aspect_ratio(self):
        result = runner.invoke(app, ["nano-banana", "generate", "x", "--aspect", "7:3"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid aspect ratio. Valid options: 1:1, 16:9" in result.output

    def test_invalid_model(self):
        result = runner.invoke(app, ["nano-banana", "generate", "x", "-m", "ultra"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid model. Use 'flash' or 'pro'." in result.output

    def test_missing_key(self, temp_dir):
        result = runner.invoke(
            app, ["nano-banana", "generate", "x", "-o", str(temp_dir / "o.png")],
            env={"GEMINI_API_KEY": None},
        )
        assert result.exit_code == EXIT_CODE_FAIL
        assert "GEMINI_API_KEY environment variable is required." in result.output

    @patch('agent_skills.cli.nano_banana.GeminiImageClient')
    def test_generate_writes_image_and_records_cost(self, mock_client_class, temp_dir):
        mock_client_class.return_value.generate.return_value = GeminiImage(b"png-data", "Here is your fox")
        output = temp_dir / "out" / "fox.png"
        ledger_path = temp_dir / "ledger.json"

        result = runner.invoke(
            app,
            ["nano-banana", "generate", "a fox", "-o", str(output), "-s", "4K", "--ledger", str(ledger_path)],
            env={"GEMINI_API_KEY": "g"},
        )

        assert result.exit_code == EXIT_CODE_OK
        assert output.read_bytes() == b"png-data"
        assert str(output.resolve()) in result.output
        assert "Note: Here is your fox" in result.output

        model_id, body = mock_client_class.return_value.generate.call_args[0]
        assert model_id == "gemini-2.5-flash-image"
        assert "imageSize" not in body["generationConfig"]["imageConfig"]

        entry = CostLedger(ledger_path).load().history[0]
        assert (entry.model, entry.size, entry.cost) == ("gemini-2.5-flash-image", "1K", 0.039)

    @patch('agent_skills.cli.nano_banana.GeminiImageClient')
    def test_generate_uses_configured_timeout(self, mock_client_class, temp_dir):
        mock_client_class.return_value.generate.return_value = GeminiImage(b"png-data")

        result = runner.invoke(
            app,
            ["nano-banana", "generate", "a fox", "-o", str(temp_dir / "fox.png"),
             "--ledger", str(temp_dir / "ledger.json")],
            env=_timeout_env(temp_dir, GEMINI_API_KEY="g"),
        )

        assert result.exit_code == EXIT_CODE_OK
        mock_client_class.assert_called_once_with("g", timeout=7.0)

    def test_costs_report(self, temp_dir):
        ledger_path = temp_dir / "ledger.json"
        ledger = CostLedger(ledger_path)
        ledger.record("first prompt", "gemini-2.5-flash-image", "1K", "standard", 0.039)
        ledger.record("second prompt", "gemini-2.5-flash-image", "1K", "standard", 0.039)

        result = runner.invoke(app, ["nano-banana", "costs", "--ledger", str(ledger_path)])

        assert result.exit_code == EXIT_CODE_OK
        assert "Total estimated cost: $0.0780" in result.output
        assert "Images generated: 2" in result.output
        assert "Last 2 generation(s):" in result.output
        assert result.output.index("second prompt") < result.output.index("first prompt")

    def test_costs_reset(self, temp_dir):
        ledger_path = temp_dir / "ledger.json"
        CostLedger(ledger_path).record("p", "gemini-2.5-flash-image", "1K", "standard", 0.039)

        result = runner.invoke(app, ["nano-banana", "costs", "--reset", "--ledger", str(ledger_path)])

        assert "✓ Cost tracking reset" in result.output
        assert CostLedger(ledger_path).load().image_count == 0


class TestOpenAIImageCommands:
    """Test OpenAI generation and editing."""

    def test_numbered_paths(self):
        assert numbered_paths(Path("out.png"), 1) == [Path("out.png")]
        assert numbered_paths(Path("dir/out.png"), 2) == [Path("dir/out-1.png"), Path("dir/out-2.png")]

    def test_timestamped_path(self):
        from datetime import datetime, timezone
        now = datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert timestamped_path(".webp", now) == Path("generated-2025-01-02T03-04-05-678Z.webp")

    def test_transparent_jpeg_rejected(self):
        result = runner.invoke(app, ["openai-image", "generate", "x", "-f", "jpeg", "--transparent"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Transparent background not supported with JPEG format." in result.output

    def test_dalle3_edit_rejected(self, temp_dir):
        result = runner.invoke(
            app, ["openai-image", "generate", "x", "-m", "dall-e-3", "-i", str(temp_dir / "in.png")]
        )
        assert result.exit_code == EXIT_CODE_FAIL
        assert "DALL-E 3 does not support image editing" in result.output

    def test_invalid_size(self):
        result = runner.invoke(app, ["openai-image", "generate", "x", "-s", "512x512"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid size. Valid options:" in result.output

    def test_count_out_of_range(self):
        result = runner.invoke(app, ["openai-image", "generate", "x", "-n", "11"])
        assert result.exit_code != EXIT_CODE_OK

    @patch('agent_skills.cli.openai_image.GuardedOpenAIImages')
    def test_generate_several(self, mock_images_class, temp_dir):
        mock_images_class.return_value.generate.return_value = [
            GeneratedImage(b"one", revised_prompt="a clearer prompt"),
            GeneratedImage(b"two"),
        ]
        output = temp_dir / "cat.webp"

        result = runner.invoke(
            app,
            ["openai-image", "generate", "a cat", "-o", str(output), "-n", "2", "-f", "webp",
             "--ledger", str(temp_dir / "l.json")],
            env={"OPENAI_API_KEY": "sk-test"},
        )

        assert result.exit_code == EXIT_CODE_OK
        assert (temp_dir / "cat-1.webp").read_bytes() == b"one"
        assert (temp_dir / "cat-2.webp").read_bytes() == b"two"
        assert "Revised prompt: a clearer prompt" in result.output
        mock_images_class.return_value.generate.assert_called_once_with(
            "a cat", n=2, size="auto", quality="auto", output_format="webp", transparent=False
        )

    @patch('agent_skills.cli.openai_image.GuardedOpenAIImages')
    def test_edit(self, mock_images_class, temp_dir):
        mock_images_class.return_value.edit.return_value = [GeneratedImage(b"edited")]
        source = temp_dir / "in.png"
        source.write_bytes(b"src")

        result = runner.invoke(
            app,
            ["openai-image", "generate", "add a hat", "-i", str(source), "-o", str(temp_dir / "out.png"),
             "--ledger", str(temp_dir / "l.json")],
            env={"OPENAI_API_KEY": "sk-test"},
        )

        assert result.exit_code == EXIT_CODE_OK
        assert (temp_dir / "out.png").read_bytes() == b"edited"
        mock_images_class.return_value.generate.assert_not_called()

    @patch('agent_skills.cli.openai_image.GuardedOpenAIImages')
    def test_download_timeout_from_settings(self, mock_images_class, temp_dir):
        mock_images_class.return_value.generate.return_value = [GeneratedImage(b"one")]

        result = runner.invoke(
            app,
            ["openai-image", "generate", "a cat", "-o", str(temp_dir / "cat.png"),
             "--ledger", str(temp_dir / "l.json")],
            env=_timeout_env(temp_dir, OPENAI_API_KEY="sk-test"),
        )

        assert result.exit_code == EXIT_CODE_OK
        assert mock_images_class.call_args.kwargs["download_timeout"] == 7.0

    def test_missing_key(self, temp_dir):
        result = runner.invoke(
            app, ["openai-image", "generate", "x", "-o", str(temp_dir / "o.png")],
            env={"OPENAI_API_KEY": None},
        )
        assert result.exit_code == EXIT_CODE_FAIL
        assert "OPENAI_API_KEY environment variable is required." in result.output


class TestLinearCommands:
    """Test Linear commands against a mock client."""

    TEAM = {"id": "t1", "key": "ENG", "name": "Engineering", "private": False}

    def test_teams(self, linear_client):
        linear_client.get_teams.return_value = [self.TEAM]

        result = runner.invoke(app, ["linear", "teams"])

        assert result.exit_code == EXIT_CODE_OK
        assert "Found 1 teams:" in result.output
        assert "📋 ENG - Engineering" in result.output
        assert "Private: No" in result.output

    def test_create_issue_unknown_team(self, linear_client):
        linear_client.find_team.return_value = (None, [self.TEAM])

        result = runner.invoke(app, ["linear", "create-issue", "--title", "Bug", "--team", "OPS"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Team 'OPS' not found" in result.output
        assert "  ENG - Engineering" in result.output
        linear_client.create_issue.assert_not_called()

    def test_create_issue(self, linear_client):
        linear_client.find_team.return_value = (self.TEAM, [self.TEAM])
        linear_client.get_team_states.return_value = [
            {"id": "s-backlog", "type": "backlog"},
            {"id": "s-todo", "type": "unstarted"},
        ]
        linear_client.create_issue.return_value = {
            "id": "i1",
            "identifier": "ENG-7",
            "title": "Bug",
            "url": "https://linear.app/x/issue/ENG-7",
            "state": {"name": "Todo"},
            "team": {"key": "ENG", "name": "Engineering"},
        }
        linear_client.attach_urls.return_value = ["✅ Created attachment: log.txt"]

        result = runner.invoke(app, [
            "linear", "create-issue", "--title", "Bug", "--team", "eng",
            "--priority", "High", "--attachment", "https://files.test/log.txt",
        ])

        assert result.exit_code == EXIT_CODE_OK
        assert "✅ Issue created successfully!" in result.output
        assert "📋 ENG-7 - Bug" in result.output
        assert "✅ Created attachment: log.txt" in result.output
        input_data = linear_client.create_issue.call_args[0][0]
        assert input_data == {"title": "Bug", "teamId": "t1", "priority": 2, "stateId": "s-todo"}
        linear_client.attach_urls.assert_called_once_with("i1", ["https://files.test/log.txt"])

    def test_issues_csv(self, linear_client):
        linear_client.list_issues.return_value = [{
            "identifier": "ENG-1",
            "title": "Crash, on start",
            "priority": 1,
            "state": {"name": "Todo", "type": "unstarted"},
            "assignee": None,
            "team": {"key": "ENG", "name": "Engineering"},
            "project": None,
            "createdAt": None,
            "updatedAt": None,
        }]

        result = runner.invoke(app, ["linear", "issues", "--team", "ENG", "--csv"])

        assert result.exit_code == EXIT_CODE_OK
        lines = result.output.strip().split("\n")
        assert lines[0] == "identifier,title,status,priority,assignee,team,project,created,updated"
        assert lines[1] == '"ENG-1","Crash, on start","Todo","Urgent","Unassigned","ENG","No Project","N/A","N/A"'
        linear_client.list_issues.assert_called_once_with(
            team="ENG", assignee=None, project=None, status=None, search=None, limit=20
        )

    def test_update_issue_without_changes(self, linear_client):
        result = runner.invoke(app, ["linear", "update-issue", "ENG-1"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "No updates specified" in result.output
        linear_client.get_issue.assert_not_called()

    def test_update_issue_invalid_status(self, linear_client):
        linear_client.get_issue.return_value = {
            "id": "i1", "identifier": "ENG-1", "title": "T", "team": {"id": "t1", "key": "ENG"},
        }
        linear_client.get_workflow_state_id.return_value = None

        result = runner.invoke(app, ["linear", "update-issue", "ENG-1", "--status", "weird"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid status 'weird' for team ENG" in result.output
        linear_client.update_issue.assert_not_called()

    def test_update_issue_unassign(self, linear_client):
        linear_client.get_issue.return_value = {
            "id": "i1", "identifier": "ENG-1", "title": "T", "team": {"id": "t1", "key": "ENG"},
        }
        linear_client.update_issue.return_value = {
            "identifier": "ENG-1", "title": "T", "priority": 3,
            "state": {"name": "Todo"}, "assignee": None, "updatedAt": None,
        }
        linear_client.attach_urls.return_value = []

        result = runner.invoke(app, ["linear", "update-issue", "ENG-1", "--assignee", "none", "--priority", "medium"])

        assert result.exit_code == EXIT_CODE_OK
        linear_client.update_issue.assert_called_once_with("i1", {"assigneeId": None, "priority": 3})
        assert "Assignee: Unassigned" in result.output
        assert "Priority: Medium" in result.output

    def test_issue_not_found(self, linear_client):
        linear_client.get_issue.return_value = None
        result = runner.invoke(app, ["linear", "issue", "ENG-404"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Issue 'ENG-404' not found" in result.output

    def test_delete_issue(self, linear_client):
        result = runner.invoke(app, ["linear", "delete-issue", "ENG-1"])
        assert result.exit_code == EXIT_CODE_OK
        assert "✅ Issue ENG-1 deleted successfully" in result.output
        linear_client.delete_issue.assert_called_once_with("ENG-1")

    def test_project_update_requires_message(self, linear_client):
        result = runner.invoke(app, ["linear", "project-update", "Mobile"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Update message is required" in result.output

    def test_update_issue_image_appends_to_existing_description(self, linear_client, temp_dir):
        shot = temp_dir / "shot.png"
        shot.write_bytes(b"png-bytes")
        linear_client.get_issue.return_value = {
            "id": "i1", "identifier": "ENG-1", "title": "T", "description": "Steps to reproduce",
            "team": {"id": "t1", "key": "ENG"},
        }
        linear_client.update_issue.return_value = {
            "identifier": "ENG-1", "title": "T", "priority": 0,
            "state": {"name": "Todo"}, "assignee": None, "updatedAt": None,
        }
        linear_client.attach_urls.return_value = []

        result = runner.invoke(app, ["linear", "update-issue", "ENG-1", "--attachment", str(shot)])

        assert result.exit_code == EXIT_CODE_OK
        assert "Preserving existing description (18 chars)" in result.output
        issue_id, updates = linear_client.update_issue.call_args[0]
        assert issue_id == "i1"
        assert list(updates) == ["description"]
        assert updates["description"].startswith("Steps to reproduce\n\n![shot.png](data:image/png;base64,")
        linear_client.attach_urls.assert_called_once_with("i1", [])

    def test_attachment_notes_tell_failed_images_from_other_files(self, linear_client, temp_dir):
        shot = temp_dir / "huge.png"
        shot.write_bytes(b"png-bytes")
        notes = temp_dir / "notes.txt"
        notes.write_text("text")
        linear_client.find_team.return_value = (self.TEAM, [self.TEAM])
        linear_client.get_team_states.return_value = []
        linear_client.create_issue.return_value = {
            "id": "i1", "identifier": "ENG-8", "title": "Bug", "url": "https://linear.app/x/issue/ENG-8",
            "state": {"name": "Todo"}, "team": {"key": "ENG", "name": "Engineering"},
        }
        linear_client.attach_urls.return_value = []

        with patch('agent_skills.clients.linear.image_to_data_uri', side_effect=RuntimeError("too big")):
            result = runner.invoke(app, [
                "linear", "create-issue", "--title", "Bug", "--team", "ENG",
                "--attachment", str(shot), "--attachment", str(notes),
            ])

        assert result.exit_code == EXIT_CODE_OK
        assert f"Skipping {shot}: the image could not be embedded" in result.output
        assert f"Skipping {notes}: only images can be embedded" in result.output
        assert f"Skipping {shot}: only images" not in result.output
        linear_client.attach_urls.assert_called_once_with("i1", [])

    def _interactive_setup(self, linear_client):
        ops = {"id": "t2", "key": "OPS", "name": "Operations"}
        linear_client.get_teams.return_value = [self.TEAM, ops]
        linear_client.get_team_states.return_value = [{"id": "s-todo", "type": "unstarted"}]
        linear_client.create_issue.return_value = {
            "id": "i9", "identifier": "OPS-9", "title": "Fix login", "url": "https://linear.app/x/issue/OPS-9",
            "state": {"name": "Todo"}, "team": {"key": "OPS", "name": "Operations"},
        }
        linear_client.attach_urls.return_value = []

    def test_create_issue_interactive_team_by_number(self, linear_client):
        self._interactive_setup(linear_client)

        result = runner.invoke(app, ["linear", "create-issue"], input="2\nFix login\n\n\n\n")

        assert result.exit_code == EXIT_CODE_OK
        assert "  2. OPS - Operations" in result.output
        assert "Selected team: OPS - Operations" in result.output
        input_data = linear_client.create_issue.call_args[0][0]
        assert input_data == {"title": "Fix login", "teamId": "t2", "priority": 0, "stateId": "s-todo"}

    def test_create_issue_interactive_team_by_key(self, linear_client):
        self._interactive_setup(linear_client)

        result = runner.invoke(
            app, ["linear", "create-issue"], input="eng\nFix login\nFails on Safari\nhigh\n\n"
        )

        assert result.exit_code == EXIT_CODE_OK
        input_data = linear_client.create_issue.call_args[0][0]
        assert input_data["teamId"] == "t1"
        assert input_data["priority"] == 2
        assert input_data["description"] == "Fails on Safari"

    def test_create_issue_interactive_empty_title(self, linear_client):
        self._interactive_setup(linear_client)

        result = runner.invoke(app, ["linear", "create-issue"], input="1\n\n")

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Title is required" in result.output
        linear_client.create_issue.assert_not_called()

    def test_create_issue_interactive_bad_team(self, linear_client):
        self._interactive_setup(linear_client)

        result = runner.invoke(app, ["linear", "create-issue"], input="9\n")

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid team selection" in result.output

    def test_create_project_bad_target_date(self, linear_client):
        result = runner.invoke(app, [
            "linear", "create-project", "--name", "Launch", "--team", "ENG", "--target-date", "2025-13-40",
        ])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Invalid target date format. Use YYYY-MM-DD" in result.output
        linear_client.create_project.assert_not_called()

    def test_projects_active_only(self, linear_client):
        linear_client.list_projects.return_value = [
            {"name": "Mobile App", "state": "started", "progress": 40, "members": {"nodes": [{}, {}]}},
            {"name": "Legacy Site", "state": "completed", "progress": 100},
            {"name": "Dropped Idea", "state": "canceled", "progress": 0},
        ]

        result = runner.invoke(app, ["linear", "projects", "--active"])

        assert result.exit_code == EXIT_CODE_OK
        assert "Found 1 projects (active only):" in result.output
        assert "🚀 Mobile App" in result.output
        assert "Members: 2" in result.output
        assert "Legacy Site" not in result.output
        assert "Dropped Idea" not in result.output
        linear_client.list_projects.assert_called_once_with(None)

    def test_projects_unknown_team(self, linear_client):
        linear_client.list_projects.return_value = None

        result = runner.invoke(app, ["linear", "projects", "NOPE"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Team 'NOPE' not found" in result.output

    def test_user_caps_issue_lists(self, linear_client):
        assigned = [
            {"identifier": f"ENG-{n}", "title": f"Task {n}", "state": {"name": "Todo"}} for n in range(1, 13)
        ]
        assigned.append({"identifier": "ENG-99", "title": "Shipped", "state": {"name": "Done"}})
        created = [
            {"identifier": f"OPS-{n}", "title": f"Report {n}", "state": {"name": "Backlog"}} for n in range(1, 8)
        ]
        linear_client.get_viewer.return_value = {
            "name": "Ada Lovelace",
            "displayName": "ada",
            "email": "ada@example.com",
            "admin": True,
            "active": True,
            "createdAt": None,
            "teamMemberships": {"nodes": [{"team": {"key": "ENG", "name": "Engineering"}}]},
            "assignedIssues": {"nodes": assigned},
            "createdIssues": {"nodes": created},
        }

        result = runner.invoke(app, ["linear", "user"])

        assert result.exit_code == EXIT_CODE_OK
        assert "👤 ada" in result.output
        assert "Roles: Admin" in result.output
        assert "🏢 ENG - Engineering" in result.output
        assert "📋 ENG-10 - Task 10 (Todo)" in result.output
        assert "ENG-11 - Task 11" not in result.output
        assert "... and 2 more" in result.output
        assert "ENG-99" not in result.output
        assert "Issues Created: 7 total" in result.output
        assert "📝 OPS-5 - Report 5 (Backlog)" in result.output
        assert "OPS-6 -" not in result.output

    def test_user_not_found(self, linear_client):
        linear_client.get_user_by_email.return_value = None

        result = runner.invoke(app, ["linear", "user", "bob@example.com"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "User with email 'bob@example.com' not found" in result.output

    def test_missing_api_key(self):
        result = runner.invoke(app, ["linear", "teams"], env={"LINEAR_API_KEY": None})
        assert result.exit_code == EXIT_CODE_FAIL
        assert "LINEAR_API_KEY environment variable is required." in result.output


class TestAdbCommands:
    """Test adb commands against a recording runner."""

    def test_tap(self, adb_run):
        result = runner.invoke(app, ["adb", "tap", "100", "200"])
        assert result.exit_code == EXIT_CODE_OK
        assert adb_run.calls == [["adb", "-s", "dev1", "shell", "input", "tap", "100", "200"]]

    def test_swipe_default_duration(self, adb_run):
        runner.invoke(app, ["adb", "swipe", "1", "2", "3", "4"])
        assert adb_run.calls[0][-1] == "300"

    def test_text_escapes_spaces(self, adb_run):
        runner.invoke(app, ["adb", "text", "hello", "world"])
        assert adb_run.calls[0][-3:] == ["input", "text", "hello%sworld"]

    def test_key(self, adb_run):
        runner.invoke(app, ["adb", "key", "back"])
        assert adb_run.calls[0][-1] == "KEYCODE_BACK"

    def test_shell_passes_options_through(self, adb_run):
        adb_run.stdout = "total 0\n"
        result = runner.invoke(app, ["adb", "shell", "ls", "-la", "/sdcard"])
        assert result.exit_code == EXIT_CODE_OK
        assert adb_run.calls[0][-1] == "ls -la /sdcard"
        assert "total 0" in result.output

    def test_shell_output_verbatim(self, adb_run):
        adb_run.stdout = "total 8\r\ndrwxrwx--x\t2 root\tsdcard_rw\r\n"
        result = runner.invoke(app, ["adb", "shell", "ls", "-l"])
        assert result.exit_code == EXIT_CODE_OK
        assert b"total 8\r\ndrwxrwx--x\t2 root\tsdcard_rw\n" in result.stdout_bytes

    def test_uninstall_without_package(self, adb_run, temp_dir):
        error = UsageError("Could not detect package name. Specify it explicitly or set ADB_PACKAGE env var.")
        with patch('agent_skills.cli.adb.resolve_package', side_effect=error):
            result = runner.invoke(app, ["adb", "uninstall"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Could not detect package name" in result.output
        assert adb_run.calls == []

    def test_uninstall_uses_env_package(self, adb_run):
        result = runner.invoke(app, ["adb", "uninstall"], env={"ADB_PACKAGE": "com.example.app"})
        assert result.exit_code == EXIT_CODE_OK
        assert adb_run.calls[0][-2:] == ["uninstall", "com.example.app"]
        assert "Uninstalled successfully" in result.output

    def test_logcat_package_not_running(self, adb_run):
        result = runner.invoke(app, ["adb", "logcat", "--package"], env={"ADB_PACKAGE": "com.example.app"})
        assert result.exit_code == EXIT_CODE_OK
        assert "Warning: App not running, showing all logs" in result.output
        assert adb_run.calls[-1][3:] == ["logcat", "-d"]

    def test_logcat_clear(self, adb_run):
        result = runner.invoke(app, ["adb", "logcat", "--clear"])
        assert "Logcat buffer cleared" in result.output
        assert adb_run.calls == [["adb", "-s", "dev1", "logcat", "-c"]]

    def test_screenshot(self, adb_run):
        result = runner.invoke(app, ["adb", "screenshot", "shot.png"])
        assert result.exit_code == EXIT_CODE_OK
        assert "Screenshot saved to shot.png" in result.output
        assert adb_run.calls[1][3:] == ["pull", "/sdcard/screenshot_tmp.png", "shot.png"]


class TestBrowserCommands:
    """Test the Chrome launcher command."""

    @patch('agent_skills.cli.browser.get_launcher')
    def test_already_running(self, mock_get_launcher):
        mock_get_launcher.return_value.is_running.return_value = True

        result = runner.invoke(app, ["browser", "start"])

        assert result.exit_code == EXIT_CODE_OK
        assert "✓ Chrome already running on :9222" in result.output
        mock_get_launcher.return_value.start.assert_not_called()

    @patch('agent_skills.cli.browser.get_launcher')
    def test_start_with_profile(self, mock_get_launcher):
        launcher = Mock()
        launcher.is_running.return_value = False
        mock_get_launcher.return_value = launcher

        result = runner.invoke(app, ["browser", "start", "--profile"])

        assert result.exit_code == EXIT_CODE_OK
        assert "Syncing profile..." in result.output
        assert "✓ Chrome started on :9222 with your profile" in result.output
        launcher.prepare_profile.assert_called_once()
        launcher.sync_profile.assert_called_once()
        launcher.start.assert_called_once()

    @patch('agent_skills.cli.browser.get_launcher')
    def test_start_failure(self, mock_get_launcher):
        launcher = Mock()
        launcher.is_running.return_value = False
        launcher.start.side_effect = SkillError("Failed to connect to Chrome")
        mock_get_launcher.return_value = launcher

        result = runner.invoke(app, ["browser", "start"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error: Failed to connect to Chrome" in result.output
        launcher.sync_profile.assert_not_called()
