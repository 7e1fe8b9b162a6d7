import json
import logging

from authentic.libs import logging_utils
from authentic.libs.json_utils import load_json_list
from authentic.libs.reflection import get_theme, reflection_themes
from authentic.libs.schemas.settings import AppSettings, get_settings


def test_settings_read_prefixed_env(monkeypatch):
    monkeypatch.setenv("AUTHENTIC_MODEL_CHAT", "vendor/other-model")
    monkeypatch.setenv("CHAT_HISTORY_WINDOW", "6")
    monkeypatch.setenv("DEMO_MODE", "true")
    monkeypatch.setenv("DEMO_USER_ID", "demo-user")

    settings = AppSettings()

    assert settings.model_chat == "vendor/other-model"
    assert settings.chat_history_window == 6
    assert settings.demo_mode is True
    assert settings.demo_user_id == "demo-user"


def test_settings_defaults(monkeypatch):
    for key in ("MODEL_CHAT", "AUTHENTIC_MODEL_CHAT", "ENTRY_SUMMARY_CHARS", "AUTHENTIC_ENTRY_SUMMARY_CHARS"):
        monkeypatch.delenv(key, raising=False)
    settings = AppSettings()
    assert settings.model_chat == "meta-llama/llama-4-maverick:free"
    assert settings.entry_summary_chars == 200


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()


def test_theme_catalog():
    themes = reflection_themes()
    assert len(themes) == 10
    assert [t.order for t in themes] == list(range(1, 11))
    assert themes[0].name == "Authentic Self"
    assert get_theme("creative-expression").name == "Creative Expression"
    assert get_theme("unknown") is None


def test_load_json_list_shapes():
    assert load_json_list([1, 2]) == [1, 2]
    assert load_json_list("[1, 2]") == [1, 2]
    assert load_json_list(b'["a"]') == ["a"]
    assert load_json_list("") == []
    assert load_json_list("{bad") == []
    assert load_json_list('{"a": 1}') == []
    assert load_json_list(7) == []


def test_json_formatter_includes_extras():
    record = logging.LogRecord("authentic.test", logging.INFO, __file__, 1, "hello %s", ("there",), None)
    record.event = "unit"
    payload = json.loads(logging_utils.JsonFormatter().format(record))
    assert payload["message"] == "hello there"
    assert payload["event"] == "unit"
    assert payload["level"] == "INFO"


def test_configure_logging_respects_level(monkeypatch):
    monkeypatch.setenv("AUTHENTIC_LOG_LEVEL", "WARNING")
    logging_utils.configure_logging()
    assert logging.getLogger().level == logging.WARNING
    logging_utils.configure_logging(level="DEBUG", log_format="text")
    assert logging.getLogger().level == logging.DEBUG
