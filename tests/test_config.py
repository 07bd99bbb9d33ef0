"""Tests for configuration management."""

from data_labeler.core.config import AppConfig, ConfigManager


class TestAppConfig:
    """Tests for AppConfig."""

    def test_default_config(self):
        config = AppConfig()

        assert config.default_project == ""
        assert config.endpoint_url == ""
        assert config.endpoint_timeout == 30.0
        assert config.show_filled is True
        assert config.async_loading is True
        assert config.recent_projects == []

    def test_to_dict(self):
        data = AppConfig(endpoint_url="http://localhost:5000/predict", show_filled=False).to_dict()

        assert data["endpointUrl"] == "http://localhost:5000/predict"
        assert data["showFilled"] is False
        assert "lineThickness" in data

    def test_from_dict_with_defaults(self):
        config = AppConfig.from_dict({"defaultProject": "/data/demo", "fontSize": 14})

        assert config.default_project == "/data/demo"
        assert config.font_size == 14
        assert config.line_thickness == 2
        assert config.confidence_threshold == 0.25

    def test_add_recent_project(self):
        config = AppConfig(max_recent_projects=2)
        config.add_recent_project("/a")
        config.add_recent_project("/b")
        config.add_recent_project("/a")
        config.add_recent_project("/c")

        assert config.recent_projects == ["/c", "/a"]

    def test_recent_projects_disabled(self):
        config = AppConfig(max_recent_projects=0, recent_projects=["/a"])
        config.add_recent_project("/b")

        assert config.recent_projects == []


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_load_missing_file(self, tmp_path):
        manager = ConfigManager(tmp_path / "config.yaml")
        assert manager.config == AppConfig()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.yaml"
        manager = ConfigManager(path)
        manager.update(endpoint_url="http://localhost:5000/predict", line_thickness=4)

        config = ConfigManager(path).load()
        assert config.endpoint_url == "http://localhost:5000/predict"
        assert config.line_thickness == 4

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("endpointUrl: [unclosed")

        assert ConfigManager(path).load() == AppConfig()

    def test_update_ignores_unknown_keys(self, tmp_path):
        manager = ConfigManager(tmp_path / "config.yaml")
        manager.update(no_such_key=1, font_size=12)

        assert not hasattr(manager.config, "no_such_key")
        assert manager.config.font_size == 12
