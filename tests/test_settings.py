from __future__ import annotations

import threading
from pathlib import Path

import pytest

from upload_variants.errors import SettingsError
from upload_variants.settings import (
    DEFAULT_BREAKPOINTS,
    EnvSettingsProvider,
    StaticSettingsProvider,
    UploadSettings,
    parse_breakpoints,
)

_ENV_KEYS = (
    "UPLOAD_SIZE_OPTIMIZATION",
    "UPLOAD_AUTO_ORIENTATION",
    "UPLOAD_RESPONSIVE_DIMENSIONS",
    "UPLOAD_BREAKPOINTS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_parse_breakpoints_keeps_order() -> None:
    assert list(parse_breakpoints("xl=1920, large=1000,small=500").items()) == [
        ("xl", 1920),
        ("large", 1000),
        ("small", 500),
    ]


@pytest.mark.parametrize("text", ["", "large", "large=big", "large=0", "9x=100", "large=-5"])
def test_parse_breakpoints_rejects_malformed(text: str) -> None:
    with pytest.raises(SettingsError):
        parse_breakpoints(text)


def test_defaults() -> None:
    settings = UploadSettings()

    assert settings.size_optimization is False
    assert settings.auto_orientation is False
    assert settings.responsive_dimensions is False
    assert dict(settings.breakpoints) == {"large": 1000, "medium": 750, "small": 500}


@pytest.mark.asyncio
async def test_static_provider() -> None:
    settings = UploadSettings(responsive_dimensions=True)

    assert await StaticSettingsProvider(settings).get_settings() is settings
    assert await StaticSettingsProvider().get_settings() == UploadSettings()


@pytest.mark.asyncio
async def test_env_provider_without_configuration(tmp_path: Path) -> None:
    settings = await EnvSettingsProvider(env_file=tmp_path / "missing.env").get_settings()

    assert settings == UploadSettings()
    assert dict(settings.breakpoints) == dict(DEFAULT_BREAKPOINTS)


@pytest.mark.asyncio
async def test_env_provider_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UPLOAD_SIZE_OPTIMIZATION", "true")
    monkeypatch.setenv("UPLOAD_RESPONSIVE_DIMENSIONS", "1")
    monkeypatch.setenv("UPLOAD_BREAKPOINTS", "wide=1600")

    settings = await EnvSettingsProvider(env_file=None).get_settings()

    assert settings.size_optimization is True
    assert settings.auto_orientation is False
    assert settings.responsive_dimensions is True
    assert dict(settings.breakpoints) == {"wide": 1600}


@pytest.mark.asyncio
async def test_env_file_is_overridden_by_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# upload settings\n"
        "UPLOAD_AUTO_ORIENTATION='yes'\n"
        'UPLOAD_SIZE_OPTIMIZATION="on"\n'
        "OTHER=ignored\n"
        "not a pair\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("UPLOAD_SIZE_OPTIMIZATION", "off")

    settings = await EnvSettingsProvider(env_file=env_file).get_settings()

    assert settings.auto_orientation is True
    assert settings.size_optimization is False


@pytest.mark.asyncio
async def test_env_provider_rejects_bad_boolean(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UPLOAD_AUTO_ORIENTATION", "maybe")

    with pytest.raises(SettingsError):
        await EnvSettingsProvider(env_file=None).get_settings()


@pytest.mark.asyncio
async def test_env_file_is_read_off_the_event_loop(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    provider = EnvSettingsProvider(env_file=tmp_path / ".env")
    loop_thread = threading.get_ident()
    reader_threads = []

    def fake_read() -> dict[str, str]:
        reader_threads.append(threading.get_ident())
        return {"UPLOAD_RESPONSIVE_DIMENSIONS": "true"}

    monkeypatch.setattr(provider, "_read_env_file", fake_read)

    settings = await provider.get_settings()

    assert settings.responsive_dimensions is True
    assert reader_threads and reader_threads[0] != loop_thread
