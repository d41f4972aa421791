"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from teamrollup.config import (
    DEFAULT_CONFIG,
    _try_parse_env_value,
    apply_env_overrides,
    find_config_file,
    load_config,
    merge_configs,
    metric_spec_from_config,
    parse_toml,
    parse_toml_document,
    sort_key_from_config,
)
from teamrollup.errors import ConfigError
from teamrollup.graph import by_name


class TestParseToml:
    def test_parse_sections(self):
        config = parse_toml(
            """
[metrics]
additive = ["goal", "forecast"]

[[metrics.differences]]
name = "gap"
minuend = "goal"
subtrahend = "forecast"
"""
        )

        assert config["metrics"]["additive"] == ["goal", "forecast"]
        assert config["metrics"]["differences"][0]["name"] == "gap"
        assert isinstance(config["metrics"]["additive"], list)

    def test_document_preserves_comments(self):
        text = '# team settings\n[tree]\nsort = "name"  # alphabetical\n'

        document = parse_toml_document(text)

        assert document.as_string() == text

    def test_invalid_toml_raises(self):
        with pytest.raises(ConfigError, match="Invalid TOML"):
            parse_toml("[tree\nsort = ")


class TestMergeConfigs:
    def test_nested_merge(self):
        merged = merge_configs(DEFAULT_CONFIG, {"tree": {"sort": "name"}})

        assert merged["tree"]["sort"] == "name"
        assert merged["view"]["expand"] == "none"
        assert DEFAULT_CONFIG["tree"]["sort"] == "insertion"

    def test_lists_replace(self):
        merged = merge_configs(DEFAULT_CONFIG, {"metrics": {"additive": ["units"], "ratios": []}})

        assert merged["metrics"]["additive"] == ["units"]
        assert merged["metrics"]["ratios"] == []


class TestEnvOverrides:
    def test_try_parse_env_value(self):
        assert _try_parse_env_value('["a", "b"]') == ["a", "b"]
        assert _try_parse_env_value("true") is True
        assert _try_parse_env_value("FALSE") is False
        assert _try_parse_env_value("3") == 3
        assert _try_parse_env_value("2.5") == 2.5
        assert _try_parse_env_value("name") == "name"
        assert _try_parse_env_value("[broken") == "[broken"

    def test_override_existing_section(self):
        config = apply_env_overrides(DEFAULT_CONFIG, env={"TEAMROLLUP_TREE_SORT": "name"})

        assert config["tree"]["sort"] == "name"

    def test_override_matches_key_case_insensitively(self):
        config = apply_env_overrides(
            DEFAULT_CONFIG, env={"TEAMROLLUP_METRICS_ADDITIVE": '["units"]'}
        )

        assert config["metrics"]["additive"] == ["units"]

    def test_plain_string_for_list_key_splits_on_commas(self):
        config = apply_env_overrides(
            DEFAULT_CONFIG, env={"TEAMROLLUP_METRICS_ADDITIVE": "sales, grossProfit,units"}
        )

        assert config["metrics"]["additive"] == ["sales", "grossProfit", "units"]
        assert metric_spec_from_config(config).metric_names() == [
            "sales",
            "grossProfit",
            "units",
            "marginPct",
        ]

    def test_single_name_for_list_key(self):
        config = apply_env_overrides(
            {"metrics": {"additive": ["units"], "ratios": []}},
            env={"TEAMROLLUP_METRICS_ADDITIVE": "sales"},
        )

        assert config["metrics"]["additive"] == ["sales"]
        assert metric_spec_from_config(config).metric_names() == ["sales"]

    def test_string_key_stays_string(self):
        config = apply_env_overrides(DEFAULT_CONFIG, env={"TEAMROLLUP_VIEW_EXPAND": "a,b"})

        assert config["view"]["expand"] == "a,b"

    def test_unknown_section_ignored(self):
        config = apply_env_overrides(DEFAULT_CONFIG, env={"TEAMROLLUP_NOPE_X": "1", "OTHER": "2"})

        assert "nope" not in config

    def test_input_not_modified(self):
        apply_env_overrides(DEFAULT_CONFIG, env={"TEAMROLLUP_VIEW_EXPAND": "all"})

        assert DEFAULT_CONFIG["view"]["expand"] == "none"


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        config = load_config(env={})

        assert config == DEFAULT_CONFIG

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[view]\nexpand = "all"\n')

        config = load_config(path, env={})

        assert config["view"]["expand"] == "all"
        assert config["tree"]["sort"] == "insertion"

    def test_found_in_parent_directory(self, tmp_path, monkeypatch):
        (tmp_path / ".teamrollup.toml").write_text('[tree]\nsort = "super-first"\n')
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert find_config_file(nested) == (tmp_path / ".teamrollup.toml").resolve()
        assert load_config(env={})["tree"]["sort"] == "super-first"

    def test_env_beats_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[tree]\nsort = "name"\n')

        config = load_config(path, env={"TEAMROLLUP_TREE_SORT": "insertion"})

        assert config["tree"]["sort"] == "insertion"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "absent.toml", env={})


class TestConfigAccessors:
    def test_default_metric_spec(self):
        spec = metric_spec_from_config(DEFAULT_CONFIG)

        assert spec.metric_names() == ["sales", "grossProfit", "marginPct"]
        assert spec.ratios[0].sentinel == 0.0

    def test_invalid_metric_spec(self):
        config = {"metrics": {"additive": ["sales"], "ratios": [{"name": "r", "numerator": "x", "denominator": "sales"}]}}

        with pytest.raises(ConfigError, match="Invalid \\[metrics\\]"):
            metric_spec_from_config(config)

    def test_additive_string_rejected(self):
        with pytest.raises(ConfigError, match="must be a list"):
            metric_spec_from_config({"metrics": {"additive": "sales"}})

    def test_sort_key(self):
        assert sort_key_from_config({"tree": {"sort": "name"}}) is by_name
        assert sort_key_from_config({}) is None

    def test_unknown_sort_key(self):
        with pytest.raises(ConfigError, match="Unknown sort order"):
            sort_key_from_config({"tree": {"sort": "shuffle"}})
