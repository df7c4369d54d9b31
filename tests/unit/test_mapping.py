"""Unit tests for the internal-project mapping and its loader."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from ctrlboard.classification.mapping import (
    ClassificationMapping,
    ConfigurationError,
    load_mapping,
    read_settings_file,
)


class TestClassificationMapping:
    def test_build_canonicalizes_values(self):
        mapping = ClassificationMapping.build(projects=[" int ", "Admin", "", None], tokens=["schulung", "SCHULUNG"])

        assert mapping.projects == frozenset({"INT", "ADMIN"})
        assert mapping.tokens == ("SCHULUNG",)

    def test_defaults(self):
        mapping = ClassificationMapping()

        assert mapping.exclusion_prefixes == ("J",)
        assert mapping.internal_prefixes == ("N",)
        assert mapping.legacy_prefix_enabled is True
        assert mapping.legacy_token_enabled is True

    def test_mapping_is_immutable(self):
        mapping = ClassificationMapping()

        with pytest.raises(ValidationError):
            mapping.tokens = ("X",)

    def test_from_dict_exchange_format(self):
        mapping = ClassificationMapping.from_dict({"projects": ["int"], "tokens": ["foo"]})

        assert mapping.projects == frozenset({"INT"})
        assert mapping.tokens == ("FOO",)

    def test_from_dict_rules_format(self):
        mapping = ClassificationMapping.from_dict(
            {
                "rules": [
                    {"type": "code_exact", "value": "p9"},
                    {"type": "token_substring", "value": "intern"},
                    {"type": "leistungsart_prefix", "op": "include", "value": "Z"},
                    {"type": "leistungsart_prefix", "op": "exclude", "value": "U"},
                    {"type": "legacy_int_prefix", "enabled": False},
                ]
            }
        )

        assert "P9" in mapping.projects
        assert mapping.tokens == ("INTERN",)
        assert mapping.internal_prefixes == ("N", "Z")
        assert mapping.exclusion_prefixes == ("J", "U")
        assert mapping.legacy_prefix_enabled is False
        assert mapping.legacy_token_enabled is True

    def test_disabled_rule_removes_default(self):
        mapping = ClassificationMapping.from_dict(
            {"rules": [{"type": "leistungsart_prefix", "op": "include", "value": "N", "enabled": False}]}
        )

        assert mapping.internal_prefixes == ()

    def test_merges_both_formats(self):
        mapping = ClassificationMapping.from_dict(
            {"projects": ["A"], "rules": [{"type": "code_exact", "value": "B"}]}
        )

        assert mapping.projects == frozenset({"A", "B"})

    @pytest.mark.parametrize("data", [None, [], "text", {"projects": "INT", "rules": "x"}])
    def test_malformed_input_yields_defaults(self, data):
        mapping = ClassificationMapping.from_dict(data)

        assert mapping.projects == frozenset()
        assert mapping.tokens == ()

    def test_to_dict_round_trips_exchange_format(self):
        mapping = ClassificationMapping.build(projects=["B", "A"], tokens=["T"])

        assert mapping.to_dict() == {"projects": ["A", "B"], "tokens": ["T"]}


class TestLoadMapping:
    def test_missing_file_returns_defaults(self, tmp_path):
        mapping = load_mapping(tmp_path / "missing.yaml")

        assert mapping == ClassificationMapping()

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "mapping.yaml"
        path.write_text("projects:\n  - INT\ntokens:\n  - SCHULUNG\n")

        mapping = load_mapping(path)

        assert mapping.projects == frozenset({"INT"})
        assert mapping.tokens == ("SCHULUNG",)

    def test_loads_json(self, tmp_path):
        path = tmp_path / "mapping.json"
        path.write_text(json.dumps({"projects": ["ADMIN"], "tokens": []}))

        assert load_mapping(path).projects == frozenset({"ADMIN"})

    def test_invalid_yaml_raises_configuration_error(self, tmp_path):
        path = tmp_path / "mapping.yaml"
        path.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigurationError) as exc_info:
            load_mapping(path)

        assert "Invalid settings file" in str(exc_info.value)

    def test_non_mapping_content_raises_configuration_error(self, tmp_path):
        path = tmp_path / "mapping.yaml"
        path.write_text("- INT\n- ADMIN\n")

        with pytest.raises(ConfigurationError):
            load_mapping(path)

    def test_read_settings_file_missing_is_none(self, tmp_path):
        assert read_settings_file(tmp_path / "nothing.json") is None
