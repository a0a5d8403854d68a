import pytest

from managers import ConfigManager
from models.enums import LogLevel


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "lifecycle.yaml"
    path.write_text(
        "server:\n"
        "  host: 127.0.0.1\n"
        "  port: 9100\n"
        "readiness:\n"
        "  period_seconds: 2\n"
        "  failure_threshold: 5\n"
        "logging:\n"
        "  level: DEBUG\n",
        encoding="utf-8",
    )
    return path


def test_defaults_when_file_missing(tmp_path):
    config = ConfigManager(str(tmp_path / "missing.yaml"), environ={}).load()

    assert config.host == "0.0.0.0"
    assert config.port == 9000
    assert config.grace_delay_seconds == 30
    assert config.orchestrated is False
    assert config.production is False
    assert config.log_level is LogLevel.INFO
    assert config.log_colors is True
    assert config.log_pretty is True


def test_values_from_yaml(config_file):
    config = ConfigManager(str(config_file), environ={}).load()

    assert config.host == "127.0.0.1"
    assert config.port == 9100
    assert config.readiness_period_seconds == 2
    assert config.readiness_failure_threshold == 5
    assert config.grace_delay_seconds == 10
    assert config.log_level is LogLevel.DEBUG
    assert config.handler_timeout == 5.0


def test_environment_overrides_yaml(config_file):
    environ = {
        "LIFECYCLE_PORT": "9200",
        "READINESS_PERIOD_SECONDS": "1.5",
        "READINESS_FAILURE_THRESHOLD": "2",
        "LOG_LEVEL": "warning",
    }
    config = ConfigManager(str(config_file), environ=environ).load()

    assert config.port == 9200
    assert config.grace_delay_seconds == 3.0
    assert config.log_level is LogLevel.WARN


def test_invalid_override_is_ignored(config_file):
    config = ConfigManager(str(config_file), environ={"LIFECYCLE_PORT": "not-a-port"}).load()
    assert config.port == 9100


def test_orchestrator_and_production_detection(tmp_path):
    environ = {"KUBERNETES_SERVICE_HOST": "10.0.0.1", "APP_ENV": "Production"}
    config = ConfigManager(str(tmp_path / "missing.yaml"), environ=environ).load()

    assert config.orchestrated is True
    assert config.production is True
    assert config.log_colors is False
    assert config.log_pretty is False


def test_zero_grace_window_falls_back(tmp_path):
    environ = {"READINESS_PERIOD_SECONDS": "0"}
    config = ConfigManager(str(tmp_path / "missing.yaml"), environ=environ).load()
    assert config.grace_delay_seconds == 5.0


def test_broken_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "lifecycle.yaml"
    path.write_text("server: [unclosed\n", encoding="utf-8")

    config = ConfigManager(str(path), environ={}).load()

    assert config.port == 9000


def test_non_mapping_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "lifecycle.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    config = ConfigManager(str(path), environ={}).load()

    assert config.port == 9000


def test_unknown_log_level_uses_info(tmp_path):
    config = ConfigManager(str(tmp_path / "missing.yaml"), environ={"LOG_LEVEL": "CHATTY"}).load()
    assert config.log_level is LogLevel.INFO


def test_bundled_config_file_loads():
    manager = ConfigManager(environ={})
    config = manager.load()

    assert config.port == 9000
    assert manager.data["server"]["host"] == "0.0.0.0"
