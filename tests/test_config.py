# tests/test_config.py
"""
Tests for AnalysisConfig validation and JSON loading.
"""

import json

import pytest

from braceqa.config import AnalysisConfig, load_config
from braceqa.errors import BraceQAError, ConfigError


class TestAnalysisConfig:

    def test_defaults(self):
        config = AnalysisConfig()
        assert config.max_function_lines == 50
        assert config.text_max_complexity == 12
        assert config.tree_max_complexity == 15
        assert config.max_file_lines == 600
        assert config.max_average_function_length == 40
        assert config.source_suffixes == (".swift",)
        assert config.sensitive_keywords == ("password", "secret", "key")
        assert config.workers is None
        assert config.language == "ko"

    def test_lists_become_tuples(self):
        config = AnalysisConfig(source_suffixes=[".swift", ".kt"])
        assert config.source_suffixes == (".swift", ".kt")

    @pytest.mark.parametrize("kwargs", [
        {"max_function_lines": 0},
        {"max_file_lines": -1},
        {"tree_max_complexity": True},
        {"text_max_complexity": "12"},
        {"source_suffixes": "swift"},
        {"source_suffixes": ("swift",)},
        {"sensitive_keywords": ("ok", 3)},
        {"declaration_keyword": " "},
        {"comment_marker": ""},
        {"workers": 0},
        {"language": "fr"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            AnalysisConfig(**kwargs)

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(ConfigError, match="max_lines"):
            AnalysisConfig.from_mapping({"max_lines": 3})

    def test_with_overrides_ignores_none(self):
        config = AnalysisConfig()
        assert config.with_overrides(max_file_lines=None) is config
        changed = config.with_overrides(max_file_lines=1200, workers=None, language="en")
        assert changed.max_file_lines == 1200
        assert changed.language == "en"
        assert changed.workers is None

    def test_to_dict_round_trip(self):
        config = AnalysisConfig(disabled_rules=("unresolved_tag_ast",), workers=2)
        data = config.to_dict()
        assert data["disabled_rules"] == ["unresolved_tag_ast"]
        assert AnalysisConfig.from_mapping(data) == config

    def test_config_error_is_braceqa_error(self):
        assert issubclass(ConfigError, BraceQAError)


class TestLoadConfig:

    def test_load(self, tmp_path):
        path = tmp_path / "braceqa.json"
        path.write_text(json.dumps({
            "max_function_lines": 60,
            "source_suffixes": [".swift"],
            "disabled_rules": ["unresolved_tag_ast"],
        }), encoding="utf-8")
        config = load_config(path)
        assert config.max_function_lines == 60
        assert config.disabled_rules == ("unresolved_tag_ast",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as info:
            load_config(tmp_path / "nope.json")
        assert info.value.path.endswith("nope.json")

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"bogus": 1}', '{"max_file_lines": 0}'])
    def test_invalid_content_carries_path(self, tmp_path, content):
        path = tmp_path / "bad.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigError) as info:
            load_config(path)
        assert info.value.path == str(path)
        assert str(info.value).startswith(str(path))
