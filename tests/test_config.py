import pytest

import chefrun.config as config_module
from chefrun.config import ChefRunConfig, get_config

ENV_KEYS = [
    "CHEFRUN_CACHE_PATH",
    "CHEFRUN_TELEMETRY",
    "CHEFRUN_MAX_WORKERS",
    "CHEFRUN_SSH_PORT",
    "CHEFRUN_SSH_USER",
    "CHEFRUN_SSH_KEY",
    "CHEFRUN_COMMAND_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        # setenv first so monkeypatch restores the key to "unset" afterwards,
        # even if load_dotenv writes it during the test.
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)
    monkeypatch.setattr(config_module, "DEFAULT_SETTINGS_FILE", tmp_path / "absent.yaml")


class TestChefRunConfig:
    def test_defaults(self):
        config = ChefRunConfig.load()
        assert config.cache_path is None
        assert config.telemetry_enabled is True
        assert config.max_workers == 4
        assert config.ssh_port == 22
        assert config.ssh_user == "root"

    def test_yaml_settings(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text("cache_path: /opt/cache\nmax_workers: 8\ntelemetry_enabled: false\n", encoding="utf-8")
        config = ChefRunConfig.load(settings_file=settings)
        assert config.cache_path == "/opt/cache"
        assert config.max_workers == 8
        assert config.telemetry_enabled is False

    def test_yaml_telemetry_string(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text('telemetry_enabled: "off"\n', encoding="utf-8")
        assert ChefRunConfig.load(settings_file=settings).telemetry_enabled is False

    def test_environment_overrides_yaml(self, tmp_path, monkeypatch):
        settings = tmp_path / "settings.yaml"
        settings.write_text("max_workers: 8\n", encoding="utf-8")
        monkeypatch.setenv("CHEFRUN_MAX_WORKERS", "2")
        monkeypatch.setenv("CHEFRUN_TELEMETRY", "no")
        config = ChefRunConfig.load(settings_file=settings)
        assert config.max_workers == 2
        assert config.telemetry_enabled is False

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text('CHEFRUN_SSH_USER="ubuntu"\nCHEFRUN_SSH_PORT=2222\n', encoding="utf-8")
        config = get_config(env_file=env_file)
        assert config.ssh_user == "ubuntu"
        assert config.ssh_port == 2222

    def test_missing_env_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ChefRunConfig.load(env_file=tmp_path / ".env")

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("CHEFRUN_SSH_PORT", "twenty-two")
        with pytest.raises(ValueError, match="CHEFRUN_SSH_PORT"):
            ChefRunConfig.load()

    def test_invalid_boolean(self, monkeypatch):
        monkeypatch.setenv("CHEFRUN_TELEMETRY", "maybe")
        with pytest.raises(ValueError):
            ChefRunConfig.load()

    def test_unknown_setting(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text("colour: false\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Unknown settings"):
            ChefRunConfig.load(settings_file=settings)

    def test_non_mapping_settings(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            ChefRunConfig.load(settings_file=settings)

    def test_missing_explicit_settings_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ChefRunConfig.load(settings_file=tmp_path / "nope.yaml")

    def test_range_validation(self):
        with pytest.raises(ValueError):
            ChefRunConfig(max_workers=0)
        with pytest.raises(ValueError):
            ChefRunConfig(ssh_port=0)
