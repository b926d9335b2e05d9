"""
The covers module extracts embedded artwork into the cover art directory. Every track gets its own
cover, rewritten on each processing. An album's cover is taken from the first track of the album
that carries artwork, and is never overwritten afterwards.
"""

import logging
from pathlib import Path

from audiokiosk.audiotags import Picture
from audiokiosk.config import Config

logger = logging.getLogger(__name__)

COVER_EXTENSIONS = ["jpg", "png"]


def cover_extension(picture: Picture) -> str:
    return "png" if "png" in picture.format.lower() else "jpg"


def track_cover_dir(c: Config) -> Path:
    return c.cover_art_dir / "tracks"


def album_cover_dir(c: Config) -> Path:
    return c.cover_art_dir / "albums"


def track_cover_path(c: Config, track_id: int) -> Path | None:
    return _find_cover(track_cover_dir(c), track_id)


def album_cover_path(c: Config, album_id: int) -> Path | None:
    return _find_cover(album_cover_dir(c), album_id)


def extract_covers(
    c: Config,
    pictures: list[Picture],
    *,
    track_id: int,
    album_id: int | None,
) -> Path | None:
    """
    Write the first embedded picture as the track's cover, and as the album's cover if the album has
    none yet. Returns the track cover path, or None if there was no artwork.
    """
    if not pictures:
        return None
    picture = pictures[0]
    ext = cover_extension(picture)

    track_dir = track_cover_dir(c)
    track_dir.mkdir(parents=True, exist_ok=True)
    # A retagged track may have switched image formats; drop the stale file.
    if (existing := track_cover_path(c, track_id)) and existing.suffix != f".{ext}":
        existing.unlink(missing_ok=True)
    track_cover = track_dir / f"{track_id}.{ext}"
    track_cover.write_bytes(picture.data)
    logger.debug(f"Wrote track cover {track_cover}")

    if album_id is not None:
        album_dir = album_cover_dir(c)
        album_dir.mkdir(parents=True, exist_ok=True)
        if album_cover_path(c, album_id) is None:
            album_cover = album_dir / f"{album_id}.{ext}"
            album_cover.write_bytes(picture.data)
            logger.info(f"Wrote album cover {album_cover}")

    return track_cover


def _find_cover(d: Path, entity_id: int) -> Path | None:
    for ext in COVER_EXTENSIONS:
        p = d / f"{entity_id}.{ext}"
        if p.exists():
            return p
    return None
