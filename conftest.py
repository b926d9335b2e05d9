import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from audiokiosk.audiotags import AudioTags, Picture, TagParseError
from audiokiosk.catalog import maybe_invalidate_catalog_database
from audiokiosk.config import Config

logger = logging.getLogger(__name__)

# Smallest valid headers; the cover extractor only inspects the declared format.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16


@pytest.fixture(autouse=True)
def debug_logging() -> None:
    logging.getLogger().setLevel(logging.DEBUG)


@pytest.fixture()
def isolated_dir() -> Iterator[Path]:
    with CliRunner().isolated_filesystem():
        yield Path.cwd()


@pytest.fixture()
def config(isolated_dir: Path) -> Config:
    cache_dir = isolated_dir / "cache"
    cache_dir.mkdir()

    music_source_dir = isolated_dir / "source"
    music_source_dir.mkdir()

    c = Config(
        music_source_dir=music_source_dir,
        cache_dir=cache_dir,
        cover_art_dir=cache_dir / "covers",
        audio_extensions=[".flac"],
    )
    maybe_invalidate_catalog_database(c)
    return c


class FakeTagParser:
    """
    A stand-in for `AudioTags.from_file`. Tags are registered per path; the calls are recorded so
    that tests can assert which files were read.
    """

    def __init__(self) -> None:
        self.tags: dict[Path, AudioTags] = {}
        self.calls: list[Path] = []

    def __call__(self, p: Path) -> AudioTags:
        self.calls.append(p)
        try:
            return self.tags[p]
        except KeyError as e:
            raise TagParseError(f"No tags registered for {p}") from e


@pytest.fixture()
def tag_parser() -> FakeTagParser:
    return FakeTagParser()


@pytest.fixture()
def add_file(config: Config, tag_parser: FakeTagParser) -> Callable[..., Path]:
    """Create an audio file in the source directory and register its tags with the fake parser."""

    def _add_file(
        relpath: str,
        *,
        title: str | None = None,
        artist: str | None = None,
        album: str | None = None,
        duration: float | None = None,
        pictures: list[Picture] | None = None,
        mtime: float = 1_700_000_000.0,
    ) -> Path:
        p = config.music_source_dir.resolve() / relpath
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(b"not really audio")
        os.utime(p, (mtime, mtime))
        tag_parser.tags[p] = AudioTags(
            title=title,
            artist=artist,
            album=album,
            duration_seconds=duration,
            pictures=pictures or [],
        )
        return p

    return _add_file
