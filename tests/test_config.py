from cloudlog.config import Settings
from cloudlog.models.schemas import Severity


class TestSettings:
    def test_default_values(self):
        s = Settings()
        assert s.log_level == "INFO"
        assert s.service == ""
        assert s.version == ""
        assert s.has_identity is False

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARN")
        monkeypatch.setenv("SERVICE", "my-app")
        monkeypatch.setenv("VERSION", "1.0")
        s = Settings.load()
        assert s.severity is Severity.WARN
        assert s.service == "my-app"
        assert s.version == "1.0"
        assert s.has_identity is True

    def test_log_level_normalised_to_uppercase(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = Settings.load()
        assert s.log_level == "DEBUG"

    def test_invalid_level_falls_back_to_info(self, caplog):
        s = Settings(log_level="LOUD")
        assert s.log_level == "INFO"
        assert "LOG_LEVEL 'LOUD' is not valid or not set" in caplog.text

    def test_unset_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("SERVICE", "my-app")
        monkeypatch.setenv("VERSION", "1.0")
        assert Settings.load().severity is Severity.INFO

    def test_missing_identity_warns(self, monkeypatch, caplog):
        monkeypatch.setenv("SERVICE", "my-app")
        s = Settings.load()
        assert s.has_identity is False
        assert "SERVICE and VERSION are not both set" in caplog.text

    def test_complete_identity_does_not_warn(self, monkeypatch, caplog):
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        monkeypatch.setenv("SERVICE", "my-app")
        monkeypatch.setenv("VERSION", "1.0")
        Settings.load()
        assert caplog.text == ""
