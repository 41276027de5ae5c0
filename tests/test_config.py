import pytest

from jotdown.runtime.config import DEFAULT_PLACEHOLDER, EditorConfig


def test_defaults() -> None:
    config = EditorConfig()

    assert config.history_capacity == 50
    assert config.autosave_debounce_ms == 0
    assert config.placeholder == DEFAULT_PLACEHOLDER


def test_from_env_reads_prefixed_variables() -> None:
    config = EditorConfig.from_env(
        {
            "JOTDOWN_HISTORY_CAPACITY": "10",
            "JOTDOWN_DOCUMENT_PATH": "/tmp/todo.md",
            "JOTDOWN_IMPORT_PATH": "/tmp/inbox.md",
            "UNRELATED": "ignored",
        }
    )

    assert config.history_capacity == 10
    assert config.document_path == "/tmp/todo.md"
    assert config.import_path == "/tmp/inbox.md"


def test_overrides_win_over_environment() -> None:
    config = EditorConfig.from_env(
        {"JOTDOWN_HISTORY_CAPACITY": "10"}, history_capacity=3
    )

    assert config.history_capacity == 3


def test_from_env_uses_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JOTDOWN_AUTOSAVE_DEBOUNCE_MS", "250")

    assert EditorConfig.from_env().autosave_debounce_ms == 250


def test_non_integer_value_is_rejected() -> None:
    with pytest.raises(ValueError, match="JOTDOWN_HISTORY_CAPACITY"):
        EditorConfig.from_env({"JOTDOWN_HISTORY_CAPACITY": "many"})


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        EditorConfig(history_capacity=0)
    with pytest.raises(ValueError):
        EditorConfig(autosave_debounce_ms=-5)
    with pytest.raises(ValueError):
        EditorConfig(highlight_delimiter="")
