import logging
import tempfile
from pathlib import Path

import pytest

from audiokiosk.config import (
    DEFAULT_AUDIO_EXTENSIONS,
    Config,
    ConfigDecodeError,
    ConfigNotFoundError,
    InvalidConfigValueError,
    MissingConfigKeyError,
)


def test_config_minimal(monkeypatch: pytest.MonkeyPatch) -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setattr("audiokiosk.config.XDG_CACHE_KIOSK", Path(tmpdir) / "xdgcache")
        path = Path(tmpdir) / "config.toml"
        with path.open("w") as fp:
            fp.write(
                """
                music_source_dir = "~/.music-src"
                """
            )

        c = Config.parse(config_path_override=path)
        assert c.music_source_dir == Path.home() / ".music-src"
        assert c.cache_dir == Path(tmpdir) / "xdgcache"
        assert c.cache_dir.is_dir()
        assert c.cover_art_dir == c.cache_dir / "covers"
        assert c.audio_extensions == DEFAULT_AUDIO_EXTENSIONS
        assert c.catalog_database_path == c.cache_dir / "catalog.sqlite3"


def test_config_full() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.toml"
        cache_dir = Path(tmpdir) / "cache"
        cover_art_dir = Path(tmpdir) / "covers"
        with path.open("w") as fp:
            fp.write(
                f"""
                music_source_dir = "~/.music-src"
                cache_dir = "{cache_dir}"
                cover_art_dir = "{cover_art_dir}"
                audio_extensions = ["flac", ".MP3", " .ogg"]
                """
            )

        c = Config.parse(config_path_override=path)
        assert c == Config(
            music_source_dir=Path.home() / ".music-src",
            cache_dir=cache_dir,
            cover_art_dir=cover_art_dir,
            audio_extensions=[".flac", ".mp3", ".ogg"],
        )


def test_config_not_found() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.toml"
        with pytest.raises(ConfigNotFoundError):
            Config.parse(config_path_override=path)


def test_config_invalid_toml() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.toml"
        path.write_text("music_source_dir = ")
        with pytest.raises(ConfigDecodeError):
            Config.parse(config_path_override=path)


def test_config_missing_key_validation() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.toml"
        path.touch()
        with pytest.raises(MissingConfigKeyError) as excinfo:
            Config.parse(config_path_override=path)
        assert (
            str(excinfo.value)
            == f"Missing key music_source_dir in configuration file ({path})"
        )


def test_config_value_validation() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.toml"
        cache_dir = Path(tmpdir) / "cache"
        config = f'cache_dir = "{cache_dir}"\n'

        # music_source_dir
        path.write_text("music_source_dir = 123")
        with pytest.raises(InvalidConfigValueError) as excinfo:
            Config.parse(config_path_override=path)
        assert (
            str(excinfo.value)
            == f"Invalid value for music_source_dir in configuration file ({path}): must be a path"
        )
        config += 'music_source_dir = "~/.music-src"\n'

        # cache_dir
        path.write_text('music_source_dir = "~/.music-src"\ncache_dir = 123')
        with pytest.raises(InvalidConfigValueError) as excinfo:
            Config.parse(config_path_override=path)
        assert (
            str(excinfo.value)
            == f"Invalid value for cache_dir in configuration file ({path}): must be a path"
        )

        # cover_art_dir
        path.write_text(config + "cover_art_dir = 123")
        with pytest.raises(InvalidConfigValueError) as excinfo:
            Config.parse(config_path_override=path)
        assert (
            str(excinfo.value)
            == f"Invalid value for cover_art_dir in configuration file ({path}): must be a path"
        )

        # audio_extensions
        for bad in ['"flac"', "[]", "[123]", '[""]', '["."]']:
            path.write_text(config + f"audio_extensions = {bad}")
            with pytest.raises(InvalidConfigValueError) as excinfo:
                Config.parse(config_path_override=path)
            assert str(excinfo.value).startswith(
                f"Invalid value for audio_extensions in configuration file ({path}): "
            )


def test_config_unrecognized_keys(caplog: pytest.LogCaptureFixture) -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.toml"
        path.write_text(
            f"""
            music_source_dir = "~/.music-src"
            cache_dir = "{Path(tmpdir) / "cache"}"
            fuse_mount_dir = "~/music"

            [player]
            socket = "/tmp/player.sock"
            """
        )
        with caplog.at_level(logging.WARNING, logger="audiokiosk.config"):
            Config.parse(config_path_override=path)
        assert (
            "Unrecognized options found in configuration file: fuse_mount_dir, player.socket"
            in caplog.text
        )
