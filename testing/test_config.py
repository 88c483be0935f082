"""
Tests for loading, saving and validating the TOML configuration.
"""

import pytest

from camper.config import Config, AudioFormat


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv("CAMPER_IDENTITY", raising=False)
    monkeypatch.delenv("CAMPER_CONFIG", raising=False)


def test_missing_file_loads_empty(tmp_path):
    config = Config(str(tmp_path / "missing.toml"))

    assert config.config == {}
    assert config.fan_id is None
    assert config.identity is None
    assert config.library is None
    assert config.format is None
    assert not config.is_valid()


def test_loads_values(config_file):
    config = Config(str(config_file))

    assert config.fan_id == 1234
    assert config.identity == "secret-cookie"
    assert config.format is AudioFormat.FLAC
    assert config.is_valid()


def test_save_round_trip(tmp_path):
    library = tmp_path / "music"
    library.mkdir()
    path = tmp_path / "nested" / "config.toml"

    config = Config(str(path))
    config.set("bandcamp", "fan_id", 42)
    config.set("bandcamp", "identity", 'quoted "value"\twith tab')
    config.set("library", "path", str(library))
    config.set("library", "format", AudioFormat.OGG_VORBIS)
    config.save()

    reloaded = Config(str(path))
    assert reloaded.fan_id == 42
    assert reloaded.identity == 'quoted "value"\twith tab'
    assert reloaded.library == str(library)
    assert reloaded.format is AudioFormat.OGG_VORBIS
    assert reloaded.is_valid()


def test_save_round_trip_non_ascii(tmp_path):
    library = tmp_path / "\U0001F3B5 albums"
    library.mkdir()
    path = tmp_path / "config.toml"

    config = Config(str(path))
    config.set("bandcamp", "fan_id", 42)
    config.set("bandcamp", "identity", "café\x7f\U0001F3B5")
    config.set("library", "path", str(library))
    config.set("library", "format", AudioFormat.FLAC)
    config.save()

    reloaded = Config(str(path))
    assert reloaded.identity == "café\x7f\U0001F3B5"
    assert reloaded.library == str(library)
    assert reloaded.is_valid()


def test_environment_overrides_identity(config_file, monkeypatch):
    monkeypatch.setenv("CAMPER_IDENTITY", "from-env")

    assert Config(str(config_file)).identity == "from-env"


def test_environment_selects_config_path(config_file, monkeypatch):
    monkeypatch.setenv("CAMPER_CONFIG", str(config_file))

    assert Config().fan_id == 1234


@pytest.mark.parametrize("section,key,value", [
    ("bandcamp", "fan_id", 0),
    ("bandcamp", "identity", ""),
    ("library", "path", "/definitely/not/a/real/library"),
    ("library", "format", "cassette"),
])
def test_invalid_values(config_file, section, key, value):
    config = Config(str(config_file))
    config.set(section, key, value)

    assert not config.is_valid()


def test_format_values_are_kebab_case():
    assert [f.value for f in AudioFormat] == [
        "mp3-v0", "mp3", "flac", "aac", "ogg-vorbis", "alac", "wav", "aiff",
    ]
    assert str(AudioFormat.MP3_V0) == "mp3-v0"
