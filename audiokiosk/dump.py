"""
The dump module serializes catalog entities to JSON for the CLI and for any consumer that wants a
plain data view of the catalog.
"""

import json
from typing import Any

from audiokiosk.catalog import (
    Album,
    Track,
    get_album,
    get_track,
    get_tracks_of_album,
    list_albums,
    list_artists,
    list_tracks,
)
from audiokiosk.common import AlbumDoesNotExistError, TrackDoesNotExistError
from audiokiosk.config import Config
from audiokiosk.covers import album_cover_path, track_cover_path


def track_to_json(c: Config, t: Track) -> dict[str, Any]:
    cover = track_cover_path(c, t.id)
    return {**t.dump(), "cover_image_path": str(cover) if cover else None}


def album_to_json(c: Config, a: Album) -> dict[str, Any]:
    cover = album_cover_path(c, a.id)
    return {**a.dump(), "cover_image_path": str(cover) if cover else None}


def dump_track(c: Config, track_id: int) -> str:
    track = get_track(c, track_id)
    if track is None:
        raise TrackDoesNotExistError(f"Track {track_id} does not exist")
    return json.dumps(track_to_json(c, track))


def dump_all_tracks(c: Config) -> str:
    return json.dumps([track_to_json(c, t) for t in list_tracks(c)])


def dump_album(c: Config, album_id: int) -> str:
    album = get_album(c, album_id)
    if album is None:
        raise AlbumDoesNotExistError(f"Album {album_id} does not exist")
    return json.dumps(
        {
            **album_to_json(c, album),
            "tracks": [t.dump() for t in get_tracks_of_album(c, album_id)],
        }
    )


def dump_all_albums(c: Config) -> str:
    return json.dumps([album_to_json(c, a) for a in list_albums(c)])


def dump_all_artists(c: Config) -> str:
    return json.dumps([a.dump() for a in list_artists(c)])
