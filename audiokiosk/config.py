"""
The config module provides the configuration schema and parsing logic.

We provide detailed errors when an invalid configuration is detected, and emit warnings when
unrecognized keys are found.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

import appdirs

from audiokiosk.common import KioskExpectedError

XDG_CONFIG_KIOSK = Path(appdirs.user_config_dir("audiokiosk"))
CONFIG_PATH = XDG_CONFIG_KIOSK / "config.toml"

XDG_CACHE_KIOSK = Path(appdirs.user_cache_dir("audiokiosk"))

DEFAULT_AUDIO_EXTENSIONS = [".flac"]

logger = logging.getLogger(__name__)


class ConfigNotFoundError(KioskExpectedError):
    pass


class ConfigDecodeError(KioskExpectedError):
    pass


class MissingConfigKeyError(KioskExpectedError):
    pass


class InvalidConfigValueError(KioskExpectedError, ValueError):
    pass


@dataclass(frozen=True)
class Config:
    music_source_dir: Path
    cache_dir: Path
    # Embedded artwork is extracted into here. This is the only directory the scanner writes to.
    cover_art_dir: Path
    # Lower-cased, with leading dot.
    audio_extensions: list[str]

    @classmethod
    def parse(cls, config_path_override: Path | None = None) -> Config:
        # As we parse, delete consumed values from the data dictionary. If any are left over at the
        # end of the config, warn that unknown config keys were found.
        cfgpath = config_path_override or CONFIG_PATH
        try:
            with cfgpath.open("r") as fp:
                data = tomllib.loads(fp.read())
        except FileNotFoundError as e:
            raise ConfigNotFoundError(f"Configuration file not found ({cfgpath})") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigDecodeError(
                f"Failed to decode configuration file: invalid TOML: {e}"
            ) from e

        try:
            music_source_dir = Path(data["music_source_dir"]).expanduser()
            del data["music_source_dir"]
        except KeyError as e:
            raise MissingConfigKeyError(
                f"Missing key music_source_dir in configuration file ({cfgpath})"
            ) from e
        except (ValueError, TypeError) as e:
            raise InvalidConfigValueError(
                f"Invalid value for music_source_dir in configuration file ({cfgpath}): must be a path"
            ) from e

        try:
            cache_dir = Path(data["cache_dir"]).expanduser()
            del data["cache_dir"]
        except KeyError:
            cache_dir = XDG_CACHE_KIOSK
        except (TypeError, ValueError) as e:
            raise InvalidConfigValueError(
                f"Invalid value for cache_dir in configuration file ({cfgpath}): must be a path"
            ) from e
        cache_dir.mkdir(parents=True, exist_ok=True)

        try:
            cover_art_dir = Path(data["cover_art_dir"]).expanduser()
            del data["cover_art_dir"]
        except KeyError:
            cover_art_dir = cache_dir / "covers"
        except (TypeError, ValueError) as e:
            raise InvalidConfigValueError(
                f"Invalid value for cover_art_dir in configuration file ({cfgpath}): must be a path"
            ) from e

        try:
            audio_extensions = data["audio_extensions"]
            del data["audio_extensions"]
            if not isinstance(audio_extensions, list) or not audio_extensions:
                raise ValueError(f"Must be a non-empty list[str]: got {audio_extensions!r}")
            for s in audio_extensions:
                if not isinstance(s, str) or not s.strip().strip("."):
                    raise ValueError(f"Each extension must be a non-empty str: got {s!r}")
            audio_extensions = ["." + s.strip().lstrip(".").lower() for s in audio_extensions]
        except KeyError:
            audio_extensions = list(DEFAULT_AUDIO_EXTENSIONS)
        except ValueError as e:
            raise InvalidConfigValueError(
                f"Invalid value for audio_extensions in configuration file ({cfgpath}): {e}"
            ) from e

        if data:
            unrecognized_accessors: list[str] = []
            for k, v in data.items():
                if isinstance(v, dict):
                    unrecognized_accessors.extend(f"{k}.{sk}" for sk in v)
                else:
                    unrecognized_accessors.append(k)
            logger.warning(
                f"Unrecognized options found in configuration file: {', '.join(unrecognized_accessors)}"
            )

        return Config(
            music_source_dir=music_source_dir,
            cache_dir=cache_dir,
            cover_art_dir=cover_art_dir,
            audio_extensions=audio_extensions,
        )

    @property
    def catalog_database_path(self) -> Path:
        return self.cache_dir / "catalog.sqlite3"
