"""Tests for dispatch configuration loading."""

import json
import logging

import pytest

from mcp_annotations.config import (
    LOCAL_CONFIG_DIR,
    DispatchConfig,
    load_dispatch_config,
)


@pytest.fixture
def global_file(tmp_path):
    path = tmp_path / "global" / "config.json"
    path.parent.mkdir()
    return path


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


class TestDispatchConfig:
    """Tests for DispatchConfig."""

    def test_defaults(self):
        config = DispatchConfig()
        assert config.strict is True
        assert config.generate_output_schema is True
        assert config.default_mime_type == "text/plain"
        assert config.void_result_text == "Done"

    def test_from_dict_ignores_unknown_keys(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = DispatchConfig.from_dict({"strict": False, "bogus": 1})
        assert config.strict is False
        assert "bogus" in caplog.text

    def test_merged_overrides(self):
        config = DispatchConfig().merged({"default_mime_type": "application/json"})
        assert config.default_mime_type == "application/json"
        assert config.strict is True


class TestLoadDispatchConfig:
    """Tests for global and local config files."""

    def test_no_files(self, tmp_path, global_file):
        assert load_dispatch_config(tmp_path, global_config=global_file) == DispatchConfig()

    def test_global_file(self, tmp_path, global_file):
        _write(global_file, {"dispatch": {"strict": False}})
        config = load_dispatch_config(None, global_config=global_file)
        assert config.strict is False

    def test_local_overrides_global(self, tmp_path, global_file):
        _write(global_file, {"dispatch": {"strict": False, "void_result_text": "ok"}})
        _write(
            tmp_path / "work" / LOCAL_CONFIG_DIR / "config.json",
            {"dispatch": {"void_result_text": "finished"}},
        )
        config = load_dispatch_config(tmp_path / "work", global_config=global_file)
        assert config.strict is False
        assert config.void_result_text == "finished"

    def test_other_sections_ignored(self, tmp_path, global_file):
        _write(global_file, {"other": {"strict": False}})
        assert load_dispatch_config(None, global_config=global_file).strict is True

    def test_invalid_json_falls_back(self, tmp_path, global_file, caplog):
        global_file.write_text("{not json")
        with caplog.at_level(logging.WARNING):
            config = load_dispatch_config(None, global_config=global_file)
        assert config == DispatchConfig()
        assert "Could not read dispatch config" in caplog.text
