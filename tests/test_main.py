"""Tests for the command line interface."""

import json

import pytest
from click.testing import CliRunner

from archlens import __version__
from archlens.main import cli


@pytest.fixture
def repo(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "PatientController.cs").write_text(
        "public class PatientController\n{\n"
        "    public PatientController(PatientService service) { }\n"
        "    public string Get(int id) { return null; }\n}\n"
    )
    (src / "PatientService.cs").write_text(
        "public class PatientService\n{\n"
        "    public PatientService(EpicService epic) { }\n"
        "    public void Save(int id) { var x = id; Log(x); }\n}\n"
    )
    (src / "EpicService.cs").write_text(
        "public class EpicService\n{\n    public string Fetch() => null;\n}\n"
    )
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


class TestAnalyzeCommand:
    def test_json_only(self, runner, repo):
        result = runner.invoke(cli, ["analyze", str(repo), "--json-only", "-k", "Epic"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["summary"]["totalFiles"] == 3
        assert data["summary"]["totalClasses"] == 3
        assert [e["name"] for e in data["layers"]["integration"]] == ["EpicService"]
        assert data["layers"]["integration"][0]["externalSystem"] == "Epic"
        assert data["technicalDebt"]["summary"]["totalItems"] == 1

    def test_without_keywords_nothing_is_integration(self, runner, repo):
        result = runner.invoke(cli, ["analyze", str(repo), "--json-only"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["layers"]["integration"] == []
        assert len(data["layers"]["business"]) == 2

    def test_tables(self, runner, repo):
        result = runner.invoke(cli, ["analyze", str(repo), "-k", "Epic"])
        assert result.exit_code == 0, result.output
        assert "ArchLens" in result.output
        assert "Summary" in result.output
        assert "Layers" in result.output
        assert "Technical Debt" in result.output

    def test_output_file(self, runner, repo, tmp_path):
        out = tmp_path / "reports" / "arch.json"
        result = runner.invoke(cli, ["analyze", str(repo), "--json-only", "-O", str(out)])
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text()) == json.loads(result.stdout)

    def test_config_file(self, runner, repo, tmp_path):
        config = tmp_path / "archlens.json"
        config.write_text(json.dumps({"integrationKeywords": ["Epic"], "includeDependencies": False}))
        result = runner.invoke(cli, ["analyze", str(repo), "--json-only", "-c", str(config)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["dependencies"] == []
        assert data["rootPath"] == str(repo.resolve())

    def test_registry_app(self, runner, repo, tmp_path):
        registry = tmp_path / "apps.json"
        registry.write_text(json.dumps({"applications": [
            {"name": "portal", "type": "dotnet", "path": str(repo), "analysis": {"integrationKeywords": ["Epic"]}},
        ]}))
        result = runner.invoke(cli, ["analyze", "--json-only", "-c", str(registry), "-a", "portal"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["layers"]["integration"][0]["name"] == "EpicService"
        assert data["application"] == {
            "name": "portal", "displayName": "portal", "type": "dotnet", "framework": "",
        }

    def test_plain_run_has_no_application(self, runner, repo):
        result = runner.invoke(cli, ["analyze", str(repo), "--json-only"])
        assert result.exit_code == 0, result.output
        assert "application" not in json.loads(result.stdout)

    def test_app_requires_config(self, runner, repo):
        result = runner.invoke(cli, ["analyze", str(repo), "--app", "portal"])
        assert result.exit_code == 2

    def test_missing_path(self, runner, tmp_path):
        result = runner.invoke(cli, ["analyze", str(tmp_path / "missing"), "--json-only"])
        assert result.exit_code == 1
        assert "Not a directory" in result.output

    def test_invalid_hourly_rate(self, runner, repo):
        result = runner.invoke(cli, ["analyze", str(repo), "--hourly-rate", "cheap"])
        assert result.exit_code == 1
        assert "hourly_rate" in result.output

    def test_non_finite_hourly_rate(self, runner, repo):
        result = runner.invoke(cli, ["analyze", str(repo), "--hourly-rate", "nan"])
        assert result.exit_code == 1
        assert "finite" in result.output


class TestApplicationsCommand:
    def test_lists_registry(self, runner, tmp_path):
        registry = tmp_path / "apps.json"
        registry.write_text(json.dumps({"applications": [
            {"name": "portal", "type": "dotnet", "path": "portal"},
            {"name": "web", "type": "react", "path": "web"},
        ]}))
        result = runner.invoke(cli, ["applications", "-c", str(registry)])
        assert result.exit_code == 0, result.output
        assert "Applications" in result.output

    def test_bad_registry(self, runner, tmp_path):
        registry = tmp_path / "apps.json"
        registry.write_text("[]")
        result = runner.invoke(cli, ["applications", "-c", str(registry)])
        assert result.exit_code == 1


class TestVersion:
    def test_version_command(self, runner):
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert f"archlens-cli v{__version__}" in result.output

    def test_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
