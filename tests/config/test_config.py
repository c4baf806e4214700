#!/usr/bin/env python3
"""Tests for the configuration system."""

import sys
from pathlib import Path

import pytest
import yaml

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from coral_sst.config import Config, config
from coral_sst.core.exceptions import ConfigurationError


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML config file and return its path."""
    def writer(data, name='config.yml'):
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else yaml.dump(data))
        return path
    return writer


class TestConfigurationSystem:
    """Test the configuration system functionality."""

    def test_module_config_uses_defaults(self):
        """Under pytest no config.yml is discovered."""
        assert config.config_file is None
        assert config.get('threshold.value') == 30.148
        assert config.get('analysis.band') == 'SST'

    def test_default_sources(self):
        sources = Config().sources
        assert [s['name'] for s in sources] == ['gcomc_v2', 'gcomc_v3']
        assert sources[0]['multiplier'] == 0.0012
        assert sources[0]['offset'] == -10.0
        assert sources[1]['end_date'] == '2023-07-31'

    def test_dot_notation(self):
        cfg = Config()
        assert cfg.get('study.sample_point') == [-81.2132, 24.7198]
        assert cfg.get('classification.valid_range') == [0.0, 40.0]
        assert cfg.get('missing.key', 'fallback') == 'fallback'
        assert cfg.get('threshold.value.deeper') is None

    def test_yaml_override_deep_merges(self, write_config):
        path = write_config({
            'threshold': {'value': 29.5},
            'processing': {'max_workers': 8},
        })
        cfg = Config(path)
        assert cfg.config_file == path
        assert cfg.get('threshold.value') == 29.5
        assert cfg.get('threshold.band_name') == 'Bleaching_Threshold'
        assert cfg.processing['max_workers'] == 8

    def test_yaml_lists_replace(self, write_config):
        path = write_config({'sources': [{'name': 'only', 'collection_id': 'c', 'band': 'b',
                                          'start_date': '2020-01-01', 'end_date': '2021-01-01'}]})
        assert len(Config(path).sources) == 1

    def test_defaults_not_shared(self, write_config):
        Config(write_config({'study': {'name': 'changed'}}))
        assert Config().study['name'] == 'southern_florida'

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Config(tmp_path / 'absent.yml')

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigurationError):
            Config(write_config("threshold: [unclosed"))

    def test_non_mapping_top_level(self, write_config):
        with pytest.raises(ConfigurationError):
            Config(write_config("- just\n- a list\n"))

    def test_empty_file(self, write_config):
        assert Config(write_config("")).get('threshold.value') == 30.148

    def test_env_discovery(self, write_config, monkeypatch):
        path = write_config({'threshold': {'value': 31.0}}, name='env.yml')
        monkeypatch.setenv(Config.ENV_VAR, str(path))
        monkeypatch.delenv('PYTEST_CURRENT_TEST', raising=False)
        monkeypatch.setenv('FORCE_TEST_MODE', 'false')
        assert Config().get('threshold.value') == 31.0
