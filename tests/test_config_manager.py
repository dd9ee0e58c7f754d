"""Tests for user configuration management."""

import pytest
import yaml

from seed_sync.config_manager import get_config_path, load_config, save_config


class TestConfigPath:
    """Tests for config file path resolution."""

    def test_get_config_path_default(self):
        """Test that config path is in user home directory."""
        config_path = get_config_path()
        assert config_path.name == "config.yaml"
        assert config_path.parent.name == ".seed-sync"


class TestLoadConfig:
    """Tests for loading configuration."""

    def test_load_config_file_exists(self, tmp_path):
        """Test loading a valid config file."""
        config_file = tmp_path / "config.yaml"
        config_data = {"mongo": {"database": "shop"}, "seed": {"target_dir": "sample"}}

        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        assert load_config(config_file) == config_data

    def test_load_config_file_missing(self, tmp_path):
        """Test loading when config file doesn't exist."""
        assert load_config(tmp_path / "nonexistent.yaml") is None

    def test_load_config_empty_file(self, tmp_path):
        """Test loading an empty config file."""
        config_file = tmp_path / "config.yaml"
        config_file.touch()

        assert load_config(config_file) is None

    def test_load_config_invalid_yaml(self, tmp_path):
        """Test loading a corrupted YAML file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(yaml.YAMLError):
            load_config(config_file)


class TestSaveConfig:
    """Tests for saving configuration."""

    def test_save_config_creates_parent_directory(self, tmp_path):
        """Test that save_config creates parent directory if it doesn't exist."""
        config_file = tmp_path / ".seed-sync" / "config.yaml"
        config_data = {"storage": {"policy": "update"}}

        save_config(config_file, config_data)

        assert config_file.exists()
        assert load_config(config_file) == config_data

    def test_save_config_overwrites_existing(self, tmp_path):
        """Test that save_config overwrites existing config file."""
        config_file = tmp_path / "config.yaml"

        save_config(config_file, {"storage": {"policy": "always"}})
        save_config(config_file, {"storage": {"policy": "none"}})

        assert load_config(config_file) == {"storage": {"policy": "none"}}

    def test_save_config_yaml_format(self, tmp_path):
        """Test that saved YAML is block style, not flow style."""
        config_file = tmp_path / "config.yaml"

        save_config(config_file, {"mongo": {"uri": "mongodb://localhost:27017"}, "verbose": False})

        content = config_file.read_text()
        assert "mongo:\n" in content
        assert "{" not in content
