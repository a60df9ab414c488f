"""Unit tests for persisted settings."""

from pathlib import Path

import pytest

from stash.core.settings import (
    BASE_REWRITE_INSTRUCTION,
    PROMPT_STYLE_NAMES,
    Settings,
    SettingsError,
    SettingsStore,
    cycle_style,
    style_label,
)


class TestSettingsStoreLoad:
    """Tests for SettingsStore.load()."""

    def test_defaults_when_no_file(self, tmp_path: Path):
        settings = SettingsStore(tmp_path / "config.yaml").load()

        assert settings == Settings()
        assert settings.prompt_style == "professional"
        assert not settings.has_api_key

    def test_defaults_when_empty(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert SettingsStore(path).load() == Settings()

    def test_loads_values(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "api_key: sk-test\nprompt_style: casual\n"
            "custom_prompt: null\n"
        )

        settings = SettingsStore(path).load()

        assert settings.api_key == "sk-test"
        assert settings.has_api_key
        assert settings.prompt_style == "casual"

    def test_ignores_unknown_keys(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("prompt_style: concise\nsomething_else: 1\n")

        assert SettingsStore(path).load().prompt_style == "concise"

    def test_raises_on_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("api_key: [unclosed")

        with pytest.raises(SettingsError, match="invalid yaml"):
            SettingsStore(path).load()

    def test_raises_on_non_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(SettingsError, match="must be a mapping"):
            SettingsStore(path).load()

    def test_raises_on_unknown_style(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("prompt_style: shouty\n")

        with pytest.raises(SettingsError, match="invalid settings"):
            SettingsStore(path).load()


class TestSettingsStoreSave:
    """Tests for SettingsStore.save()."""

    def test_save_then_load(self, tmp_path: Path):
        store = SettingsStore(tmp_path / "nested" / "config.yaml")
        settings = Settings(prompt_style="custom", custom_prompt="Use bullet points.")

        store.save(settings.with_api_key("sk-123"))
        loaded = store.load()

        assert loaded.api_key == "sk-123"
        assert loaded.custom_prompt == "Use bullet points."

    def test_save_failure_raises(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = SettingsStore(blocker / "config.yaml")

        with pytest.raises(SettingsError, match="failed to write"):
            store.save(Settings())


class TestSettingsModel:
    """Tests for Settings helpers."""

    def test_blank_api_key_clears(self):
        settings = Settings().with_api_key("sk-1").with_api_key("   ")

        assert settings.api_key is None

    @pytest.mark.parametrize(
        "style,expected_suffix",
        [
            ("professional", "Make the writing more professional and polished."),
            ("casual", "Keep the writing casual and conversational."),
            ("simple", "Simplify the language and make it easier to understand."),
        ],
    )
    def test_rewrite_prompt_appends_style(self, style, expected_suffix):
        prompt = Settings(prompt_style=style).rewrite_system_prompt()

        assert prompt.startswith(BASE_REWRITE_INSTRUCTION)
        assert prompt.endswith(expected_suffix)

    def test_custom_prompt(self):
        settings = Settings(prompt_style="custom", custom_prompt="Write like a pirate.")

        assert settings.rewrite_system_prompt() == (
            f"{BASE_REWRITE_INSTRUCTION} Write like a pirate."
        )

    def test_custom_without_text_is_base_only(self):
        assert Settings(prompt_style="custom").rewrite_system_prompt() == (
            BASE_REWRITE_INSTRUCTION
        )

    def test_cycle_style_wraps(self):
        assert cycle_style(PROMPT_STYLE_NAMES[-1], 1) == PROMPT_STYLE_NAMES[0]
        assert cycle_style(PROMPT_STYLE_NAMES[0], -1) == PROMPT_STYLE_NAMES[-1]

    def test_style_label(self):
        assert style_label("technical") == "Technical"
