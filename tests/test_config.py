"""Tests for configuration loading and validation."""

import json
from decimal import Decimal

import pytest

from archlens.config import AnalysisConfig, list_applications, load_app_config, load_app_info
from archlens.models import ApplicationInfo
from archlens.errors import ConfigurationError


@pytest.fixture
def registry(tmp_path):
    path = tmp_path / "apps.json"
    path.write_text(json.dumps({
        "applications": [
            {
                "name": "patient-portal",
                "displayName": "Patient Portal",
                "type": "dotnet",
                "framework": "aspnetcore",
                "path": "portal",
                "analysis": {"integrationKeywords": ["Epic", "Financial"], "hourlyRate": 150},
            },
            {"name": "scheduler", "type": "java", "framework": "spring", "path": "/srv/scheduler"},
            {"name": "web", "type": "react", "path": "web"},
            {"name": "broken", "type": "dotnet"},
        ]
    }))
    return path


class TestFromDict:
    def test_camel_case_keys(self):
        config = AnalysisConfig.from_dict({
            "rootPath": "/src",
            "integrationKeywords": ["Epic"],
            "godClassMethodThreshold": 20,
            "hourlyRate": 150,
            "includeDataFlow": False,
        })
        assert config.root_path == "/src"
        assert config.integration_keywords == ["Epic"]
        assert config.god_class_method_threshold == 20
        assert config.hourly_rate == Decimal("150")
        assert config.include_data_flow is False

    def test_snake_case_keys(self):
        config = AnalysisConfig.from_dict({"root_path": "/src", "max_workers": 4})
        assert config.max_workers == 4
        assert config.worker_count == 4

    def test_defaults(self):
        config = AnalysisConfig.from_dict({"rootPath": "/src"})
        assert config.integration_keywords == []
        assert config.god_class_method_threshold == 15
        assert config.high_complexity_threshold == 10
        assert config.hourly_rate == Decimal("200")
        assert config.max_debt_items == 20
        assert config.analysis_timeout_ms is None
        assert "**/*.cs" in config.include_globs

    def test_fractional_rate_is_exact(self):
        config = AnalysisConfig.from_dict({"rootPath": "/src", "hourlyRate": "0.1"})
        assert config.hourly_rate * 3 == Decimal("0.3")

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration field: rootDir"):
            AnalysisConfig.from_dict({"rootDir": "/src"})

    def test_not_an_object(self):
        with pytest.raises(ConfigurationError):
            AnalysisConfig.from_dict(["/src"])

    def test_relative_root_resolved_against_base_dir(self, tmp_path):
        config = AnalysisConfig.from_dict({"rootPath": "src"}, base_dir=tmp_path)
        assert config.root_path == str((tmp_path / "src").resolve())

    @pytest.mark.parametrize("data", [
        {},
        {"rootPath": ""},
        {"rootPath": "/src", "integrationKeywords": "Epic"},
        {"rootPath": "/src", "integrationKeywords": ["Epic", ""]},
        {"rootPath": "/src", "includeGlobs": []},
        {"rootPath": "/src", "highComplexityThreshold": -1},
        {"rootPath": "/src", "godClassMethodThreshold": "15"},
        {"rootPath": "/src", "analysisTimeoutMs": 0},
        {"rootPath": "/src", "maxWorkers": True},
        {"rootPath": "/src", "hourlyRate": "lots"},
        {"rootPath": "/src", "hourlyRate": -5},
        {"rootPath": "/src", "hourlyRate": "NaN"},
        {"rootPath": "/src", "hourlyRate": "Infinity"},
        {"rootPath": "/src", "includePatterns": "yes"},
    ])
    def test_invalid(self, data):
        with pytest.raises(ConfigurationError):
            AnalysisConfig.from_dict(data)


class TestFromFile:
    def test_default_root(self, tmp_path):
        path = tmp_path / "archlens.json"
        path.write_text(json.dumps({"integrationKeywords": ["Epic"]}))
        config = AnalysisConfig.from_file(path, default_root=str(tmp_path))
        assert config.root_path == str(tmp_path)
        assert config.integration_keywords == ["Epic"]

    def test_file_root_wins(self, tmp_path):
        path = tmp_path / "archlens.json"
        path.write_text(json.dumps({"rootPath": "app"}))
        config = AnalysisConfig.from_file(path, default_root="/elsewhere")
        assert config.root_path == str((tmp_path / "app").resolve())

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            AnalysisConfig.from_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "archlens.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            AnalysisConfig.from_file(path)


class TestOverrides:
    def test_with_overrides(self):
        config = AnalysisConfig(root_path="/src").with_overrides(hourly_rate="99.5", max_workers=2)
        assert config.hourly_rate == Decimal("99.5")
        assert config.max_workers == 2

    def test_overrides_are_validated(self):
        with pytest.raises(ConfigurationError):
            AnalysisConfig(root_path="/src").with_overrides(max_workers=0)

    def test_original_unchanged(self):
        config = AnalysisConfig(root_path="/src")
        config.with_overrides(integration_keywords=["Epic"])
        assert config.integration_keywords == []


class TestRegistry:
    def test_list_applications(self, registry):
        apps = {a["name"]: a for a in list_applications(registry)}
        assert apps["patient-portal"]["display_name"] == "Patient Portal"
        assert apps["patient-portal"]["can_analyze"] is True
        assert apps["scheduler"]["can_analyze"] is True
        assert apps["scheduler"]["display_name"] == "scheduler"
        assert apps["web"]["can_analyze"] is False

    def test_load_app_config(self, registry, tmp_path):
        config = load_app_config(registry, "patient-portal")
        assert config.root_path == str((tmp_path / "portal").resolve())
        assert config.integration_keywords == ["Epic", "Financial"]
        assert config.hourly_rate == Decimal("150")

    def test_absolute_app_path(self, registry):
        assert load_app_config(registry, "scheduler").root_path == "/srv/scheduler"

    def test_unknown_app(self, registry):
        with pytest.raises(ConfigurationError, match="not found"):
            load_app_config(registry, "billing")

    def test_app_without_path(self, registry):
        with pytest.raises(ConfigurationError, match="no path"):
            load_app_config(registry, "broken")

    def test_load_app_info(self, registry):
        assert load_app_info(registry, "patient-portal") == ApplicationInfo(
            name="patient-portal", display_name="Patient Portal", type="dotnet", framework="aspnetcore",
        )
        assert load_app_info(registry, "web").display_name == "web"
        with pytest.raises(ConfigurationError, match="not found"):
            load_app_info(registry, "billing")

    def test_malformed_registry(self, tmp_path):
        path = tmp_path / "apps.json"
        path.write_text(json.dumps({"apps": []}))
        with pytest.raises(ConfigurationError, match="applications"):
            list_applications(path)
