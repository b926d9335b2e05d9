from audiokiosk.artiststr import canonical_key, join_artists, split_artists
from audiokiosk.audiotags import (
    SUPPORTED_AUDIO_EXTENSIONS,
    AudioTags,
    Picture,
    TagParseError,
    UnsupportedFiletypeError,
)
from audiokiosk.catalog import (
    Album,
    Artist,
    Catalog,
    Track,
    get_album,
    get_track,
    get_track_path,
    get_tracks_of_album,
    list_albums,
    list_artists,
    list_tracks,
    maybe_invalidate_catalog_database,
)
from audiokiosk.common import (
    VERSION,
    AlbumDoesNotExistError,
    KioskError,
    KioskExpectedError,
    TrackDoesNotExistError,
    initialize_logging,
)
from audiokiosk.config import Config
from audiokiosk.covers import album_cover_path, track_cover_path
from audiokiosk.scanner import ScanError, ScanResult, ScanRootNotFoundError, run_scan

__all__ = [
    # Plumbing
    "initialize_logging",
    "VERSION",
    # Errors
    "KioskError",
    "KioskExpectedError",
    "TrackDoesNotExistError",
    "AlbumDoesNotExistError",
    "UnsupportedFiletypeError",
    "TagParseError",
    "ScanError",
    "ScanRootNotFoundError",
    # Configuration
    "Config",
    # Artist names
    "canonical_key",
    "split_artists",
    "join_artists",
    # Tagging
    "AudioTags",
    "Picture",
    "SUPPORTED_AUDIO_EXTENSIONS",
    # Scanning
    "ScanResult",
    "run_scan",
    # Catalog
    "Catalog",
    "maybe_invalidate_catalog_database",
    "Track",
    "list_tracks",
    "get_track",
    "get_track_path",
    "track_cover_path",
    "Album",
    "list_albums",
    "get_album",
    "get_tracks_of_album",
    "album_cover_path",
    "Artist",
    "list_artists",
]

initialize_logging(__name__)
