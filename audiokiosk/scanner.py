"""
The scanner module keeps the catalog in sync with the music source directory.

A scan walks the source directory depth-first and processes one audio file at a time:

1. **Change detection:** The stored mtimes of every catalogued track are read once, at the start of
   the scan. A file whose mtime is unchanged is skipped entirely; its tags are not even read.
2. **Tag parsing:** The tags of new and modified files are read with the tag parser. The default
   parser is `AudioTags.from_file`, but any callable with the same contract works.
3. **Entity resolution:** The artist credit is split into individual artists, which are resolved
   against the catalog together with the album. The album's artist credit is recomputed.
4. **Track upsert:** The track row at the file's path is updated in place, or created.
5. **Cover extraction:** Embedded artwork is written to the cover art directory.

A file that fails at any step is logged and skipped, and its catalog writes are rolled back so that
the next scan retries it. The rest of the library is still indexed. The scanner never deletes rows,
so tracks of deleted files remain in the catalog.
"""

import logging
import os
import sqlite3
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from audiokiosk.artiststr import join_artists, split_artists
from audiokiosk.audiotags import AudioTags, TagParseError, UnsupportedFiletypeError
from audiokiosk.catalog import Catalog, maybe_invalidate_catalog_database
from audiokiosk.common import KioskError, KioskExpectedError
from audiokiosk.config import Config
from audiokiosk.covers import extract_covers
from audiokiosk.registry import (
    link_track_artists,
    resolve_album,
    resolve_artists,
    sync_album_artists,
)

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"

TagParser = Callable[[Path], AudioTags]


class ScanError(KioskError):
    pass


class ScanRootNotFoundError(KioskExpectedError):
    pass


@dataclass
class ScanResult:
    # Audio files discovered.
    scanned: int = 0
    # Files skipped because their mtime did not change.
    skipped: int = 0
    # Files whose tags were read and written to the catalog.
    indexed: int = 0
    # Files that could not be read or parsed.
    failed: int = 0


@dataclass(frozen=True)
class UpsertedTrack:
    id: int
    album_id: int
    inserted: bool


def mtime_ms(st: os.stat_result) -> int:
    return st.st_mtime_ns // 1_000_000


class ChangeDetector:
    """Decides whether a file must be processed, against a snapshot taken at the start of a scan."""

    def __init__(self, source_mtimes: dict[str, int], force: bool = False):
        self.source_mtimes = source_mtimes
        self.force = force

    @classmethod
    def load(cls, catalog: Catalog, force: bool = False) -> "ChangeDetector":
        source_mtimes = catalog.load_source_mtimes()
        logger.debug(f"Loaded {len(source_mtimes)} stored track mtimes")
        return cls(source_mtimes, force)

    def is_unchanged(self, path: Path, mtime: int) -> bool:
        if self.force:
            return False
        return self.source_mtimes.get(str(path)) == mtime


def walk_audio_files(root: Path, extensions: list[str]) -> Iterator[Path]:
    """
    Yield the audio files under root, depth-first in name order. A subdirectory that cannot be listed
    is logged and skipped.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning(f"Skipping directory {root}: {e}")
        return
    for entry in entries:
        path = Path(entry.path)
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            logger.warning(f"Skipping {path}: {e}")
            continue
        if is_dir:
            yield from walk_audio_files(path, extensions)
        elif path.suffix.lower() in extensions:
            yield path


def upsert_track(catalog: Catalog, path: Path, tags: AudioTags, mtime: int) -> UpsertedTrack:
    """
    Write a parsed file to the catalog: resolve its artists and album, then update the track at the
    file's path or insert a new one. Performs exactly one write to the tracks table.
    """
    title = (tags.title or "").strip() or path.stem
    names = split_artists(tags.artist) or [UNKNOWN_ARTIST]
    duration = tags.duration_seconds or 0

    artists = resolve_artists(catalog, names)
    artist_ids = [a.id for a in artists]
    artist_credit = join_artists([a.name for a in artists])

    album = resolve_album(catalog, tags.album)
    sync_album_artists(catalog, album.id, artist_ids)

    duplicates = [
        p
        for _, p in catalog.find_tracks_by_logical_key(title, artist_credit, album.id)
        if p != path
    ]
    if duplicates:
        logger.info(
            f"Track {title!r} by {artist_credit} on {album.title!r} is also catalogued at "
            f"{', '.join(str(p) for p in duplicates)}"
        )

    track_id = catalog.get_track_id_by_path(path)
    if track_id is None:
        track_id = catalog.insert_track(
            title=title,
            artist_credit=artist_credit,
            album_id=album.id,
            source_path=path,
            duration_seconds=duration,
            source_mtime=mtime,
        )
        logger.debug(f"Inserted track {track_id} for {path}")
        inserted = True
    else:
        catalog.update_track(
            track_id,
            title=title,
            artist_credit=artist_credit,
            album_id=album.id,
            duration_seconds=duration,
            source_mtime=mtime,
        )
        logger.debug(f"Updated track {track_id} for {path}")
        inserted = False

    link_track_artists(catalog, track_id, artist_ids)

    return UpsertedTrack(id=track_id, album_id=album.id, inserted=inserted)


def scan_directory(
    c: Config,
    catalog: Catalog,
    root: Path,
    *,
    parse_tags: TagParser = AudioTags.from_file,
    force: bool = False,
) -> ScanResult:
    result = ScanResult()
    detector = ChangeDetector.load(catalog, force)
    for path in walk_audio_files(root, c.audio_extensions):
        result.scanned += 1
        try:
            mtime = mtime_ms(path.stat())
        except OSError as e:
            logger.warning(f"Skipping {path}: failed to stat file: {e}")
            result.failed += 1
            continue

        if detector.is_unchanged(path, mtime):
            logger.debug(f"Track cache hit (mtime) for {path.name}, skipping")
            result.skipped += 1
            continue

        logger.debug(f"Track cache miss for {path.name}, reading tags from disk")
        try:
            tags = _read_tags(parse_tags, path)
        except (OSError, TagParseError, UnsupportedFiletypeError) as e:
            logger.warning(f"Skipping {path}: failed to read tags: {e}")
            result.failed += 1
            continue

        # A failed cover write rolls back the track, leaving the file to be retried by the next scan.
        try:
            with catalog.transaction():
                track = upsert_track(catalog, path, tags, mtime)
                extract_covers(c, tags.pictures, track_id=track.id, album_id=track.album_id)
        except OSError as e:
            logger.warning(f"Skipping {path}: failed to write cover art: {e}")
            result.failed += 1
            continue
        logger.info(f"{'Indexed' if track.inserted else 'Updated'} track {path}")
        result.indexed += 1
    return result


def _read_tags(parse_tags: TagParser, path: Path) -> AudioTags:
    try:
        return parse_tags(path)
    except (OSError, TagParseError, UnsupportedFiletypeError):
        raise
    except Exception as e:
        raise TagParseError(f"Failed to parse tags of {path}: {e}") from e


def run_scan(
    c: Config,
    *,
    force: bool = False,
    parse_tags: TagParser = AudioTags.from_file,
) -> ScanResult:
    """
    Scan the music source directory and bring the catalog up to date. This is the single entry point
    for triggering a rescan. Callers must not run two scans at once.
    """
    root = c.music_source_dir.resolve()
    if not root.is_dir():
        raise ScanRootNotFoundError(f"Music source directory {root} does not exist")

    start = time.time()
    logger.info(f"Scanning {root}")
    try:
        maybe_invalidate_catalog_database(c)
        with Catalog.open(c) as catalog:
            result = scan_directory(c, catalog, root, parse_tags=parse_tags, force=force)
    except sqlite3.Error as e:
        raise ScanError(f"Scan of {root} aborted: catalog error: {e}") from e
    logger.info(
        f"Scan complete in {time.time() - start:.2f}s: {result.scanned} files found, "
        f"{result.indexed} indexed, {result.skipped} unchanged, {result.failed} failed"
    )
    return result
