"""Tests for layer classification."""

import pytest

from archlens.config import AnalysisConfig
from archlens.layers import (
    Classification,
    LayerClassifier,
    classify_classes,
    group_layers,
    matched_integration_keyword,
)
from archlens.models import ClassModel, Layer, MethodModel, PropertyModel


def _cls(name, methods=1, properties=0, kind="class"):
    return ClassModel(
        name=name,
        kind=kind,
        file=f"{name}.cs",
        methods=tuple(MethodModel(f"M{i}", "public") for i in range(methods)),
        properties=tuple(PropertyModel(f"P{i}", "int", "public") for i in range(properties)),
    )


@pytest.fixture
def config():
    return AnalysisConfig(root_path=".", integration_keywords=["Epic", "Financial"])


class TestLayerClassifier:
    @pytest.mark.parametrize("name, layer", [
        ("PatientController", Layer.PRESENTATION),
        ("EpicService", Layer.INTEGRATION),
        ("FinancialGatewayService", Layer.INTEGRATION),
        ("PatientService", Layer.BUSINESS),
        ("PatientRepository", Layer.DATA),
        ("DateHelper", Layer.INFRASTRUCTURE),
        ("CacheManager", Layer.INFRASTRUCTURE),
        ("StringUtility", Layer.INFRASTRUCTURE),
        ("Program", Layer.UNKNOWN),
    ])
    def test_naming_rules(self, config, name, layer):
        assert LayerClassifier(config).classify(_cls(name)).layer == layer

    def test_presentation_wins_over_keyword(self, config):
        # Rule order: presentation suffix is checked first
        assert LayerClassifier(config).classify(_cls("EpicController")).layer == Layer.PRESENTATION

    def test_keyword_without_service_suffix_is_not_integration(self, config):
        assert LayerClassifier(config).classify(_cls("EpicClient")).layer == Layer.UNKNOWN

    def test_integration_records_keyword(self, config):
        result = LayerClassifier(config).classify(_cls("EpicFinancialService"))
        assert result == Classification(Layer.INTEGRATION, "Epic")

    def test_no_keywords_means_no_integration(self):
        config = AnalysisConfig(root_path=".")
        assert LayerClassifier(config).classify(_cls("EpicService")).layer == Layer.BUSINESS

    def test_poco_is_data(self, config):
        assert LayerClassifier(config).classify(_cls("Patient", methods=0, properties=3)).layer == Layer.DATA

    def test_empty_class_is_not_poco(self, config):
        assert LayerClassifier(config).classify(_cls("Marker", methods=0, properties=0)).layer == Layer.UNKNOWN

    def test_class_with_methods_is_not_poco(self, config):
        assert LayerClassifier(config).classify(_cls("Patient", methods=1, properties=3)).layer == Layer.UNKNOWN

    def test_interfaces_follow_the_same_rules(self, config):
        assert LayerClassifier(config).classify(_cls("IPatientService", kind="interface")).layer == Layer.BUSINESS

    def test_custom_suffixes(self):
        config = AnalysisConfig(
            root_path=".",
            presentation_suffixes=["Endpoint", "Controller"],
            repository_suffixes=["Dao"],
        )
        classifier = LayerClassifier(config)
        assert classifier.classify(_cls("OrdersEndpoint")).layer == Layer.PRESENTATION
        assert classifier.classify(_cls("OrderDao")).layer == Layer.DATA
        assert classifier.classify(_cls("OrderRepository")).layer == Layer.UNKNOWN

    def test_classification_is_deterministic(self, config):
        classes = [_cls(n) for n in ("AController", "BService", "EpicService", "X")]
        assert classify_classes(classes, config) == classify_classes(classes, config)


class TestMatchedIntegrationKeyword:
    def test_first_configured_keyword_wins(self):
        assert matched_integration_keyword("FinancialEpicService", ["Epic", "Financial"]) == "Epic"

    def test_case_sensitive(self):
        assert matched_integration_keyword("EPICService", ["Epic"]) is None


class TestGroupLayers:
    def test_every_layer_present_and_sorted(self, config):
        classes = [_cls("ZController"), _cls("AController"), _cls("EpicService")]
        groups = group_layers(classes, classify_classes(classes, config))
        assert set(groups) == set(Layer)
        assert [e.name for e in groups[Layer.PRESENTATION]] == ["AController", "ZController"]
        assert groups[Layer.INTEGRATION][0].external_system == "Epic"
        assert groups[Layer.UNKNOWN] == ()

    def test_entry_shape(self, config):
        entry = group_layers([_cls("PatientService", methods=2, properties=1)],
                             [Classification(Layer.BUSINESS)])[Layer.BUSINESS][0]
        d = entry.to_dict()
        assert d["name"] == "PatientService"
        assert d["methods"] == 2
        assert d["properties"] == 1
        assert d["averageComplexity"] == 1.0
        assert "externalSystem" not in d
