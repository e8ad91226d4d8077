"""Tests for configuration module."""

import pytest

from feed_cleaner.config import (
    FilterMode,
    FilterPreferences,
    PreferencesError,
    PreferencesStore,
    Settings,
    load_default_prompt,
    load_preferences,
    normalize_mute_words,
)


def test_settings_defaults():
    """Test settings defaults."""
    settings = Settings()

    assert settings.rate_limit == 100
    assert settings.rate_window_ms == 60_000
    assert settings.debounce_ms == 300
    assert settings.min_text_length == 10
    assert settings.generate_content_url == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
    )


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("FEED_CLEANER_RATE_LIMIT", "5")
    monkeypatch.setenv("FEED_CLEANER_ORACLE_MODEL", "gemini-test")

    settings = Settings()

    assert settings.rate_limit == 5
    assert settings.generate_content_url.endswith("/gemini-test:generateContent")


def test_settings_rate_validation():
    """Test rate budget validation."""
    with pytest.raises(ValueError, match="must be positive"):
        Settings(rate_limit=0)


def test_default_prompt_has_placeholders():
    prompt = load_default_prompt()
    assert "{{author}}" in prompt
    assert "{{content}}" in prompt


@pytest.mark.parametrize("value,expected", [
    (None, []),
    ("", []),
    ("Crypto, NFT ,, giveaway ", ["crypto", "nft", "giveaway"]),
    (["  Web3", "", "AI Hype"], ["web3", "ai hype"]),
])
def test_normalize_mute_words(value, expected):
    assert normalize_mute_words(value) == expected


def test_normalize_mute_words_rejects_other_types():
    with pytest.raises(PreferencesError):
        normalize_mute_words(42)


class TestFilterPreferences:
    def test_defaults(self):
        prefs = FilterPreferences()

        assert prefs.api_key == ""
        assert prefs.filter_mode is FilterMode.HIDE
        assert prefs.mute_words == ()
        assert prefs.system_prompt == load_default_prompt()

    def test_blank_prompt_uses_default(self):
        assert FilterPreferences(system_prompt="   ").system_prompt == load_default_prompt()

    def test_frozen(self):
        prefs = FilterPreferences()
        with pytest.raises(Exception):
            prefs.filter_mode = FilterMode.BLUR


class TestPreferencesStore:
    """YAML-backed preference storage."""

    def test_missing_file_gives_defaults(self, temp_dir):
        store = PreferencesStore(temp_dir / "prefs.yaml")

        assert store.get("filter_mode") is None
        assert store.load() == FilterPreferences()

    def test_set_persists(self, temp_dir):
        path = temp_dir / "prefs.yaml"
        store = PreferencesStore(path)
        store.set("filter_mode", "blur")
        store.set("mute_words", "Crypto, NFT")
        store.set("system_prompt", "Rate {{content}} by {{author}}")

        reloaded = PreferencesStore(path).load()
        assert reloaded.filter_mode is FilterMode.BLUR
        assert reloaded.mute_words == ("crypto", "nft")
        assert reloaded.system_prompt == "Rate {{content}} by {{author}}"

    def test_empty_prompt_rejected(self, temp_dir):
        store = PreferencesStore(temp_dir / "prefs.yaml")
        with pytest.raises(PreferencesError, match="cannot be empty"):
            store.set("system_prompt", "  ")

    def test_unknown_mode_rejected(self, temp_dir):
        store = PreferencesStore(temp_dir / "prefs.yaml")
        with pytest.raises(PreferencesError, match="Unknown filter mode"):
            store.set("filter_mode", "delete")

    def test_unknown_key_rejected(self, temp_dir):
        store = PreferencesStore(temp_dir / "prefs.yaml")
        with pytest.raises(PreferencesError, match="Unknown preference"):
            store.set("theme", "dark")

    def test_comma_string_in_file(self, temp_dir):
        path = temp_dir / "prefs.yaml"
        path.write_text("mute_words: 'Crypto, Giveaway'\nfilter_mode: hide\n", encoding="utf-8")

        assert PreferencesStore(path).load().mute_words == ("crypto", "giveaway")

    def test_non_mapping_file_rejected(self, temp_dir):
        path = temp_dir / "prefs.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(PreferencesError):
            PreferencesStore(path)


def test_load_preferences_fills_key_from_env(temp_dir):
    settings = Settings(api_key="env-key", preferences_file=temp_dir / "prefs.yaml")

    assert load_preferences(settings).api_key == "env-key"


def test_stored_key_wins_over_env(temp_dir):
    path = temp_dir / "prefs.yaml"
    PreferencesStore(path).set("api_key", "stored-key")
    settings = Settings(api_key="env-key", preferences_file=path)

    assert load_preferences(settings).api_key == "stored-key"
