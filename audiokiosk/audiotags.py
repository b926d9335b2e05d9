"""
The audiotags module abstracts over tag reading for five different audio formats, exposing a single
standard interface for all audio files.

The scanner only needs a handful of fields: the title, the raw artist credit, the album, the
duration, and any embedded artwork. Missing fields are left as None; the scanner is responsible for
falling back to defaults.
"""

from __future__ import annotations

import base64
import binascii
import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import mutagen
import mutagen.flac
import mutagen.id3
import mutagen.mp3
import mutagen.mp4
import mutagen.oggopus
import mutagen.oggvorbis

from audiokiosk.common import KioskError, KioskExpectedError

logger = logging.getLogger(__name__)

SUPPORTED_AUDIO_EXTENSIONS = [
    ".mp3",
    ".m4a",
    ".ogg",
    ".opus",
    ".flac",
]


class UnsupportedFiletypeError(KioskExpectedError):
    pass


class TagParseError(KioskError):
    pass


@dataclass
class Picture:
    # The declared format of the image. Usually a MIME type, e.g. `image/png`.
    format: str
    data: bytes


@dataclass
class AudioTags:
    title: str | None
    artist: str | None
    album: str | None
    duration_seconds: float | None
    pictures: list[Picture] = field(default_factory=list)

    @classmethod
    def from_file(cls, p: Path) -> AudioTags:
        """Read the tags of an audio file on disk."""
        if not any(p.suffix.lower() == ext for ext in SUPPORTED_AUDIO_EXTENSIONS):
            raise UnsupportedFiletypeError(f"{p.suffix} not a supported filetype")
        try:
            m = mutagen.File(p)  # type: ignore
        except mutagen.MutagenError as e:  # type: ignore
            raise TagParseError(f"Failed to open file {p}: {e}") from e
        if m is None:
            raise TagParseError(f"Failed to open file {p}: unrecognized audio data")

        duration = getattr(m.info, "length", None)
        if isinstance(m, mutagen.mp3.MP3):
            return AudioTags(
                title=_get_tag(m.tags, ["TIT2"]),
                artist=_get_tag(m.tags, ["TPE1", "TPE2"]),
                album=_get_tag(m.tags, ["TALB"]),
                duration_seconds=duration,
                pictures=[
                    Picture(format=frame.mime, data=frame.data)
                    for frame in (m.tags.getall("APIC") if m.tags else [])
                ],
            )
        if isinstance(m, mutagen.mp4.MP4):
            return AudioTags(
                title=_get_tag(m.tags, ["\xa9nam"]),
                artist=_get_tag(m.tags, ["\xa9ART", "aART"]),
                album=_get_tag(m.tags, ["\xa9alb"]),
                duration_seconds=duration,
                pictures=[
                    Picture(
                        format="image/png"
                        if cover.imageformat == mutagen.mp4.MP4Cover.FORMAT_PNG
                        else "image/jpeg",
                        data=bytes(cover),
                    )
                    for cover in ((m.tags or {}).get("covr") or [])
                ],
            )
        if isinstance(m, mutagen.flac.FLAC):
            return AudioTags(
                title=_get_tag(m.tags, ["title"]),
                artist=_get_tag(m.tags, ["artist", "albumartist"]),
                album=_get_tag(m.tags, ["album"]),
                duration_seconds=duration,
                pictures=[Picture(format=pic.mime, data=pic.data) for pic in m.pictures],
            )
        if isinstance(m, (mutagen.oggvorbis.OggVorbis, mutagen.oggopus.OggOpus)):
            return AudioTags(
                title=_get_tag(m.tags, ["title"]),
                artist=_get_tag(m.tags, ["artist", "albumartist"]),
                album=_get_tag(m.tags, ["album"]),
                duration_seconds=duration,
                pictures=_get_vorbis_pictures(m.tags),
            )
        raise UnsupportedFiletypeError(f"{p} is not a supported audio file")


def _get_tag(t: Any, keys: list[str]) -> str | None:
    """
    Return the first present tag out of `keys`. Multi-valued tags are joined with commas, which the
    artist splitter understands.
    """
    if not t:
        return None
    for k in keys:
        try:
            raw_values = t[k].text if isinstance(t, mutagen.id3.ID3) else t[k]
        except KeyError:
            continue
        values: list[str] = []
        for val in raw_values:
            if isinstance(val, bytes):
                val = val.decode()
            elif not isinstance(val, str):
                val = str(val)
            if val.strip():
                values.append(val.strip())
        if values:
            return ", ".join(values)
    return None


def _get_vorbis_pictures(t: Any) -> list[Picture]:
    # Vorbis comments embed artwork as base64-encoded FLAC picture blocks.
    if not t:
        return []
    rval: list[Picture] = []
    for raw in t.get("metadata_block_picture", []):
        try:
            pic = mutagen.flac.Picture(base64.b64decode(raw))
        except (binascii.Error, ValueError, struct.error, mutagen.MutagenError) as e:  # type: ignore
            logger.debug(f"Ignoring malformed embedded picture: {e}")
            continue
        rval.append(Picture(format=pic.mime, data=pic.data))
    return rval
