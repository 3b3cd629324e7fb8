"""Integration tests for repolyzer CLI commands.

These tests exercise the full CLI workflow against a mocked GitHub API.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from repolyzer import __version__
from repolyzer.cli import app
from repolyzer.config import RepolyzerConfig
from repolyzer.github import GitHubClient
from tests.fixtures import FakeGitHubAPI, FakeGitHubHost

pytestmark = pytest.mark.integration

runner = CliRunner()


@pytest.fixture(autouse=True)
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command in an empty directory (no config file discovered)."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _use_api(monkeypatch: pytest.MonkeyPatch, api: FakeGitHubAPI | FakeGitHubHost) -> None:
    def create_client(config: RepolyzerConfig) -> GitHubClient:
        return api.client()

    monkeypatch.setattr("repolyzer.cli._create_client", create_client)


class TestRepolyzerAnalyze:
    """Integration tests for `repolyzer analyze`."""

    def test_writes_markdown_report(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI, workdir: Path
    ) -> None:
        """Test a full analysis written to a Markdown file."""
        _use_api(monkeypatch, fake_api)
        output = workdir / "out" / "REPORT.md"

        result = runner.invoke(app, ["analyze", "octocat/hello-world", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "Report written to:" in result.output
        content = output.read_text(encoding="utf-8")
        assert "# Analysis for octocat/hello-world" in content
        assert "### backend/go.mod (go, 3 dependencies)" in content
        assert "- **Lock File:** yes" in content

    def test_writes_json_report(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI, workdir: Path
    ) -> None:
        """Test JSON export from a GitHub URL argument."""
        _use_api(monkeypatch, fake_api)
        output = workdir / "report.json"

        result = runner.invoke(
            app,
            ["analyze", "https://github.com/octocat/hello-world", "-f", "json", "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["status"] == "completed"
        assert data["dependencies"]["total_deps"] == 15
        assert data["dependencies"]["ecosystems_seen"] == ["npm", "go", "python", "rust", "ruby"]
        assert data["metrics"]["bus_factor"] == 1

    def test_prints_report_to_stdout(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI
    ) -> None:
        """Test that the report goes to stdout without --output."""
        _use_api(monkeypatch, fake_api)

        result = runner.invoke(app, ["analyze", "octocat/hello-world"])

        assert result.exit_code == 0
        assert "## Dependencies" in result.output

    def test_skip_dependencies(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI, workdir: Path
    ) -> None:
        """Test that --skip-dependencies fetches no manifests."""
        _use_api(monkeypatch, fake_api)
        output = workdir / "REPORT.md"

        result = runner.invoke(
            app, ["analyze", "octocat/hello-world", "--skip-dependencies", "-o", str(output)]
        )

        assert result.exit_code == 0
        assert fake_api.content_requests() == []
        assert "## Dependencies" not in output.read_text(encoding="utf-8")

    def test_partial_failure_exits_2(
        self, monkeypatch: pytest.MonkeyPatch, workdir: Path
    ) -> None:
        """Test that recoverable errors still write the report but exit 2."""
        api = FakeGitHubAPI(failing_endpoints={"languages"})
        _use_api(monkeypatch, api)
        output = workdir / "REPORT.md"

        result = runner.invoke(app, ["analyze", "octocat/hello-world", "-o", str(output)])

        assert result.exit_code == 2
        assert "- [languages]" in output.read_text(encoding="utf-8")

    def test_missing_repository_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an unknown repository fails."""
        _use_api(monkeypatch, FakeGitHubAPI(owner="someone-else"))

        result = runner.invoke(app, ["analyze", "octocat/hello-world"])

        assert result.exit_code == 1

    def test_invalid_reference_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a malformed repository reference fails before any request."""
        api = FakeGitHubAPI()
        _use_api(monkeypatch, api)

        result = runner.invoke(app, ["analyze", "not-a-repo"])

        assert result.exit_code == 1
        assert api.requests == []

    def test_invalid_format_exits_1(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI
    ) -> None:
        """Test that an unknown --format fails."""
        _use_api(monkeypatch, fake_api)

        result = runner.invoke(app, ["analyze", "octocat/hello-world", "-f", "html"])

        assert result.exit_code == 1

    def test_format_from_config(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI, workdir: Path
    ) -> None:
        """Test that output settings come from the discovered config file."""
        _use_api(monkeypatch, fake_api)
        (workdir / "repolyzer.yaml").write_text(
            "output:\n  format: json\n  path: reports/out.json\n", encoding="utf-8"
        )

        result = runner.invoke(app, ["analyze", "octocat/hello-world"])

        assert result.exit_code == 0, result.output
        data = json.loads((workdir / "reports" / "out.json").read_text(encoding="utf-8"))
        assert data["repository"]["full_name"] == "octocat/hello-world"


def _fork_api(**kwargs: object) -> FakeGitHubAPI:
    """A second, smaller repository on the same host."""
    return FakeGitHubAPI(
        repo="spoon-knife",
        files={"requirements.txt": "flask\n"},
        contributors=[{"login": "alice", "contributions": 5}, {"login": "bob", "contributions": 5}],
        languages={"HTML": 100},
        **kwargs,
    )


class TestRepolyzerCompare:
    """Integration tests for `repolyzer compare`."""

    def test_prints_side_by_side_table(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the Markdown comparison on stdout."""
        _use_api(monkeypatch, FakeGitHubHost(FakeGitHubAPI(), _fork_api()))

        result = runner.invoke(app, ["compare", "octocat/hello-world", "octocat/spoon-knife"])

        assert result.exit_code == 0, result.output
        assert "# Comparison: octocat/hello-world vs octocat/spoon-knife" in result.output
        assert "| Metric | octocat/hello-world | octocat/spoon-knife |" in result.output
        assert "| Dependencies | 15 | 1 |" in result.output
        assert "| Ecosystems | npm, go, python, rust, ruby | python |" in result.output
        assert "| Lock File | yes | no |" in result.output
        assert "| Top Language | Python (60.0%) | HTML (100.0%) |" in result.output

    def test_writes_json_file(self, monkeypatch: pytest.MonkeyPatch, workdir: Path) -> None:
        """Test JSON export with one entry per repository, in argument order."""
        _use_api(monkeypatch, FakeGitHubHost(FakeGitHubAPI(), _fork_api()))
        output = workdir / "compare.json"

        result = runner.invoke(
            app,
            [
                "compare",
                "https://github.com/octocat/spoon-knife",
                "octocat/hello-world",
                "-f",
                "json",
                "-o",
                str(output),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Comparison written to:" in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        names = [entry["full_name"] for entry in data["repositories"]]
        assert names == ["octocat/spoon-knife", "octocat/hello-world"]
        assert data["repositories"][1]["dependencies"]["total_deps"] == 15
        assert data["repositories"][0]["metrics"]["bus_factor"] == 1

    def test_skip_dependencies(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that --skip-dependencies fetches no manifests for either repository."""
        first, second = FakeGitHubAPI(), _fork_api()
        _use_api(monkeypatch, FakeGitHubHost(first, second))

        result = runner.invoke(
            app, ["compare", "octocat/hello-world", "octocat/spoon-knife", "--skip-dependencies"]
        )

        assert result.exit_code == 0
        assert first.content_requests() == []
        assert second.content_requests() == []
        assert "| Dependencies | 0 | 0 |" in result.output

    def test_partial_failure_exits_2(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that recoverable errors are listed per repository."""
        _use_api(
            monkeypatch,
            FakeGitHubHost(FakeGitHubAPI(), _fork_api(failing_endpoints={"languages"})),
        )

        result = runner.invoke(app, ["compare", "octocat/hello-world", "octocat/spoon-knife"])

        assert result.exit_code == 2
        assert "## Warnings" in result.output
        assert "- octocat/spoon-knife [languages]" in result.output

    def test_missing_repository_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an unknown second repository fails the comparison."""
        _use_api(monkeypatch, FakeGitHubHost(FakeGitHubAPI()))

        result = runner.invoke(app, ["compare", "octocat/hello-world", "octocat/spoon-knife"])

        assert result.exit_code == 1
        assert "# Comparison" not in result.output

    def test_invalid_reference_exits_1(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a malformed reference fails before any request."""
        api = FakeGitHubAPI()
        _use_api(monkeypatch, api)

        result = runner.invoke(app, ["compare", "octocat/hello-world", "nope"])

        assert result.exit_code == 1
        assert api.requests == []


class TestRepolyzerDeps:
    """Integration tests for `repolyzer deps`."""

    def test_lists_dependencies(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI
    ) -> None:
        """Test the plain-text inventory."""
        _use_api(monkeypatch, fake_api)

        result = runner.invoke(app, ["deps", "octocat/hello-world"])

        assert result.exit_code == 0, result.output
        assert "package.json (npm, 4)" in result.output
        assert "  react-dom >=18 [peer]" in result.output
        assert "  golang.org/x/text v0.12.0 [indirect]" in result.output
        assert "Total: 15 dependencies | Ecosystems: npm, go, python, rust, ruby" in result.output
        assert "Lock file: yes" in result.output

    def test_json_output(
        self, monkeypatch: pytest.MonkeyPatch, fake_api: FakeGitHubAPI
    ) -> None:
        """Test the JSON inventory."""
        _use_api(monkeypatch, fake_api)

        result = runner.invoke(app, ["-q", "deps", "octocat/hello-world", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["total_deps"] == 15
        assert [f["path"] for f in data["files"]][0] == "package.json"

    def test_no_manifests(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a repository without manifests."""
        _use_api(monkeypatch, FakeGitHubAPI(files={"README.md": "# hi\n"}))

        result = runner.invoke(app, ["deps", "octocat/hello-world"])

        assert result.exit_code == 0
        assert "No dependencies found" in result.output
        assert "Lock file: no" in result.output

    def test_missing_repository(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an unknown repository fails."""
        _use_api(monkeypatch, FakeGitHubAPI(owner="someone-else"))

        result = runner.invoke(app, ["deps", "octocat/hello-world"])

        assert result.exit_code == 1


class TestRepolyzerInit:
    """Integration tests for `repolyzer init`."""

    def test_creates_config(self, workdir: Path) -> None:
        """Test that init writes the default config."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        config_file = workdir / ".repolyzer" / "config.yaml"
        assert config_file.exists()
        assert "max_workers" in config_file.read_text(encoding="utf-8")

    def test_refuses_overwrite(self, workdir: Path) -> None:
        """Test that an existing config is kept without --force."""
        config_file = workdir / ".repolyzer" / "config.yaml"
        config_file.parent.mkdir()
        config_file.write_text("# mine\n", encoding="utf-8")

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 1
        assert config_file.read_text(encoding="utf-8") == "# mine\n"

    def test_force_overwrites(self, workdir: Path) -> None:
        """Test that --force replaces an existing config."""
        config_file = workdir / ".repolyzer" / "config.yaml"
        config_file.parent.mkdir()
        config_file.write_text("# mine\n", encoding="utf-8")

        result = runner.invoke(app, ["init", "--force"])

        assert result.exit_code == 0
        assert "Repolyzer Configuration" in config_file.read_text(encoding="utf-8")


class TestGlobalOptions:
    """Integration tests for global options."""

    def test_version(self) -> None:
        """Test --version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"repolyzer {__version__}" in result.output

    def test_invalid_config_exits_1(self, workdir: Path) -> None:
        """Test that a malformed config file is reported."""
        (workdir / "repolyzer.yaml").write_text("output:\n  format: html\n", encoding="utf-8")

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 1

    @pytest.mark.parametrize(
        "content",
        [
            "metrics:\n  bus_threshold: [0.5]\n",
            "github:\n  timeout: null\n",
            "analysis: [unclosed\n",
        ],
    )
    def test_wrongly_typed_config_exits_1(self, workdir: Path, content: str) -> None:
        """Test that wrongly typed or unparsable settings are reported, not raised."""
        (workdir / "repolyzer.yaml").write_text(content, encoding="utf-8")

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)
