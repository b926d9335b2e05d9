"""
The registry module resolves names from tags into catalog entities: artists keyed on their canonical
key, and albums keyed on their title. It also maintains the album<->artist and track<->artist
association tables and the album's derived artist credit.

Links are only ever added. A track retagged to drop an artist keeps its old link.
"""

import logging
from dataclasses import dataclass

from audiokiosk.artiststr import canonical_key, join_artists
from audiokiosk.catalog import Catalog

logger = logging.getLogger(__name__)

UNKNOWN_ALBUM = "Unknown Album"


@dataclass(frozen=True)
class ArtistRef:
    id: int
    # The stored display name, which is the first spelling ever observed.
    name: str


@dataclass(frozen=True)
class AlbumRef:
    id: int
    title: str


def resolve_artists(catalog: Catalog, names: list[str]) -> list[ArtistRef]:
    """
    Get or create an artist for each name. Names that normalize to an empty key are skipped, and
    names that share a key resolve to the same artist once.
    """
    refs: list[ArtistRef] = []
    seen: set[int] = set()
    for name in names:
        key = canonical_key(name)
        if not key:
            continue
        artist_id, display_name = catalog.upsert_artist(key, name.strip())
        if display_name != name.strip():
            logger.debug(f"Resolved artist {name!r} to existing artist {display_name!r}")
        if artist_id in seen:
            continue
        seen.add(artist_id)
        refs.append(ArtistRef(id=artist_id, name=display_name))
    return refs


def resolve_album(catalog: Catalog, title: str | None) -> AlbumRef:
    title = title.strip() if title else ""
    if not title:
        title = UNKNOWN_ALBUM
    return AlbumRef(id=catalog.upsert_album(title), title=title)


def link_album_artists(catalog: Catalog, album_id: int, artist_ids: list[int]) -> None:
    for artist_id in artist_ids:
        catalog.insert_album_artist(album_id, artist_id)


def link_track_artists(catalog: Catalog, track_id: int, artist_ids: list[int]) -> None:
    for artist_id in artist_ids:
        catalog.insert_track_artist(track_id, artist_id)


def sync_album_artists(catalog: Catalog, album_id: int, artist_ids: list[int]) -> str:
    """
    Link the artists to the album, then recompute the album's artist credit from every artist now
    linked to it. Must run for every file of the album: a later file may introduce a new artist.

    Returns the album's artist credit.
    """
    link_album_artists(catalog, album_id, artist_ids)
    artist_credit = join_artists(catalog.get_album_artist_names(album_id))
    catalog.set_album_artist_credit(album_id, artist_credit)
    return artist_credit
