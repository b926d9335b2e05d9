"""
The catalog module encapsulates the SQLite database that stores the indexed library. It exposes the
`Catalog` store handle, which the scanner writes through, and a set of read functions for the
playback and API layers.

The catalog is derived entirely from the music source directory, so we are free to throw the
database away whenever its schema changes. The next scan rebuilds it.
"""

from __future__ import annotations

import binascii
import contextlib
import hashlib
import logging
import random
import sqlite3
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from audiokiosk.common import VERSION
from audiokiosk.config import Config

logger = logging.getLogger(__name__)

CATALOG_SCHEMA_PATH = Path(__file__).resolve().parent / "catalog.sql"


@contextlib.contextmanager
def connect(c: Config) -> Iterator[sqlite3.Connection]:
    conn = sqlite3.connect(
        c.catalog_database_path,
        detect_types=sqlite3.PARSE_DECLTYPES,
        isolation_level=None,
        timeout=15.0,
    )
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("PRAGMA journal_mode=WAL")
        yield conn
    finally:
        if conn:
            conn.close()


def maybe_invalidate_catalog_database(c: Config) -> None:
    """
    "Migrate" the database. If the schema in the database does not match that on disk, then nuke the
    database and recreate it from scratch. Otherwise, no op.
    """
    with CATALOG_SCHEMA_PATH.open("rb") as fp:
        schema_hash = hashlib.sha256(fp.read()).hexdigest()

    c.catalog_database_path.parent.mkdir(parents=True, exist_ok=True)
    with connect(c) as conn:
        cursor = conn.execute(
            """
            SELECT EXISTS(
                SELECT * FROM sqlite_master
                WHERE type = 'table' AND name = '_schema_hash'
            )
            """
        )
        if cursor.fetchone()[0]:
            cursor = conn.execute("SELECT schema_hash, version FROM _schema_hash")
            row = cursor.fetchone()
            if row and row["schema_hash"] == schema_hash and row["version"] == VERSION:
                # Everything matches! Exit!
                return

    logger.info(f"Catalog schema changed, recreating database at {c.catalog_database_path}")
    c.catalog_database_path.unlink(missing_ok=True)
    with connect(c) as conn:
        with CATALOG_SCHEMA_PATH.open("r") as fp:
            conn.executescript(fp.read())
        conn.execute(
            """
            CREATE TABLE _schema_hash (
                schema_hash TEXT
              , version TEXT
              , PRIMARY KEY (schema_hash, version)
            )
            """
        )
        conn.execute(
            "INSERT INTO _schema_hash (schema_hash, version) VALUES (?, ?)",
            (schema_hash, VERSION),
        )


class Catalog:
    """
    A handle on an open catalog database. Every write the scanner performs goes through one of these
    methods. The get-or-create methods are upserts that return the identity of the row, whether it
    was just created or already existed.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    @contextlib.contextmanager
    def open(cls, c: Config) -> Iterator[Catalog]:
        with connect(c) as conn:
            yield cls(conn)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        tx_log_id = binascii.b2a_hex(random.randbytes(8)).decode()
        start_time = time.time()

        # If we're already in a transaction, don't create a nested transaction.
        if self.conn.in_transaction:
            logger.debug(f"Transaction {tx_log_id}. Starting nested transaction, NoOp.")
            yield
            return

        logger.debug(f"Transaction {tx_log_id}. Starting transaction.")
        with self.conn:
            # BEGIN IMMEDIATE takes the write lock upfront; a deferred transaction that upgrades to
            # a write can fail with SQLITE_BUSY without respecting the timeout.
            self.conn.execute("BEGIN IMMEDIATE")
            yield
        logger.debug(
            f"Transaction {tx_log_id}. End of transaction. Duration: {time.time() - start_time}."
        )

    def load_source_mtimes(self) -> dict[str, int]:
        cursor = self.conn.execute("SELECT source_path, source_mtime FROM tracks")
        return {row["source_path"]: row["source_mtime"] for row in cursor}

    def upsert_artist(self, canonical_name: str, name: str) -> tuple[int, str]:
        """Returns the artist's id and its stored display name."""
        # The no-op DO UPDATE makes RETURNING produce the existing row on conflict. The display
        # name is left untouched.
        cursor = self.conn.execute(
            """
            INSERT INTO artists (name, canonical_name) VALUES (?, ?)
            ON CONFLICT (canonical_name) DO UPDATE SET canonical_name = excluded.canonical_name
            RETURNING id, name
            """,
            (name, canonical_name),
        )
        row = cursor.fetchone()
        return row["id"], row["name"]

    def upsert_album(self, title: str) -> int:
        cursor = self.conn.execute(
            """
            INSERT INTO albums (title, artist_credit) VALUES (?, '')
            ON CONFLICT (title) DO UPDATE SET title = excluded.title
            RETURNING id
            """,
            (title,),
        )
        return cursor.fetchone()["id"]

    def insert_album_artist(self, album_id: int, artist_id: int) -> None:
        self.conn.execute(
            """
            INSERT INTO albums_artists (album_id, artist_id) VALUES (?, ?)
            ON CONFLICT (album_id, artist_id) DO NOTHING
            """,
            (album_id, artist_id),
        )

    def get_album_artist_names(self, album_id: int) -> list[str]:
        cursor = self.conn.execute(
            """
            SELECT a.name
            FROM albums_artists aa
            JOIN artists a ON a.id = aa.artist_id
            WHERE aa.album_id = ?
            """,
            (album_id,),
        )
        return [row["name"] for row in cursor]

    def set_album_artist_credit(self, album_id: int, artist_credit: str) -> None:
        self.conn.execute(
            "UPDATE albums SET artist_credit = ? WHERE id = ? AND artist_credit <> ?",
            (artist_credit, album_id, artist_credit),
        )

    def insert_track_artist(self, track_id: int, artist_id: int) -> None:
        self.conn.execute(
            """
            INSERT INTO tracks_artists (track_id, artist_id) VALUES (?, ?)
            ON CONFLICT (track_id, artist_id) DO NOTHING
            """,
            (track_id, artist_id),
        )

    def get_track_id_by_path(self, source_path: Path) -> int | None:
        cursor = self.conn.execute(
            "SELECT id FROM tracks WHERE source_path = ?",
            (str(source_path),),
        )
        row = cursor.fetchone()
        return row["id"] if row else None

    def find_tracks_by_logical_key(
        self,
        title: str,
        artist_credit: str,
        album_id: int | None,
    ) -> list[tuple[int, Path]]:
        cursor = self.conn.execute(
            """
            SELECT id, source_path
            FROM tracks
            WHERE title = ? AND artist_credit = ? AND album_id IS ?
            ORDER BY id
            """,
            (title, artist_credit, album_id),
        )
        return [(row["id"], Path(row["source_path"])) for row in cursor]

    def insert_track(
        self,
        *,
        title: str,
        artist_credit: str,
        album_id: int | None,
        source_path: Path,
        duration_seconds: float,
        source_mtime: int,
    ) -> int:
        cursor = self.conn.execute(
            """
            INSERT INTO tracks
            (title, artist_credit, album_id, source_path, duration_seconds, source_mtime)
            VALUES (?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (title, artist_credit, album_id, str(source_path), duration_seconds, source_mtime),
        )
        return cursor.fetchone()["id"]

    def update_track(
        self,
        track_id: int,
        *,
        title: str,
        artist_credit: str,
        album_id: int | None,
        duration_seconds: float,
        source_mtime: int,
    ) -> None:
        self.conn.execute(
            """
            UPDATE tracks SET
                title = ?
              , artist_credit = ?
              , album_id = ?
              , duration_seconds = ?
              , source_mtime = ?
            WHERE id = ?
            """,
            (title, artist_credit, album_id, duration_seconds, source_mtime, track_id),
        )


@dataclass(slots=True)
class Artist:
    id: int
    name: str
    canonical_name: str

    def dump(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "canonical_name": self.canonical_name}


@dataclass(slots=True)
class Album:
    id: int
    title: str
    artist_credit: str
    artists: list[str]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Album:
        return Album(
            id=row["id"],
            title=row["title"],
            artist_credit=row["artist_credit"],
            artists=_split(row["artist_names"]) if row["artist_names"] else [],
        )

    def dump(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist_credit": self.artist_credit,
            "artists": self.artists,
        }


@dataclass(slots=True)
class Track:
    id: int
    title: str
    artist_credit: str
    album_id: int | None
    album_title: str | None
    source_path: Path
    duration_seconds: float
    source_mtime: int
    artists: list[str]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Track:
        return Track(
            id=row["id"],
            title=row["title"],
            artist_credit=row["artist_credit"],
            album_id=row["album_id"],
            album_title=row["album_title"],
            source_path=Path(row["source_path"]),
            duration_seconds=row["duration_seconds"],
            source_mtime=row["source_mtime"],
            artists=_split(row["artist_names"]) if row["artist_names"] else [],
        )

    def dump(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist_credit": self.artist_credit,
            "album_id": self.album_id,
            "album_title": self.album_title,
            "source_path": str(self.source_path),
            "duration_seconds": self.duration_seconds,
            "artists": self.artists,
        }


TRACKS_QUERY = r"""
    SELECT
        t.id
      , t.title
      , t.artist_credit
      , t.album_id
      , al.title AS album_title
      , t.source_path
      , t.duration_seconds
      , t.source_mtime
      , (
            SELECT GROUP_CONCAT(a.name, ' \\ ')
            FROM tracks_artists ta
            JOIN artists a ON a.id = ta.artist_id
            WHERE ta.track_id = t.id
        ) AS artist_names
    FROM tracks t
    LEFT JOIN albums al ON al.id = t.album_id
"""

ALBUMS_QUERY = r"""
    SELECT
        al.id
      , al.title
      , al.artist_credit
      , (
            SELECT GROUP_CONCAT(a.name, ' \\ ')
            FROM albums_artists aa
            JOIN artists a ON a.id = aa.artist_id
            WHERE aa.album_id = al.id
        ) AS artist_names
    FROM albums al
"""


def list_tracks(c: Config) -> list[Track]:
    with connect(c) as conn:
        cursor = conn.execute(f"{TRACKS_QUERY} ORDER BY t.source_path")
        return [Track.from_row(row) for row in cursor]


def get_track(c: Config, track_id: int) -> Track | None:
    with connect(c) as conn:
        cursor = conn.execute(f"{TRACKS_QUERY} WHERE t.id = ?", (track_id,))
        row = cursor.fetchone()
        return Track.from_row(row) if row else None


def get_track_path(c: Config, track_id: int) -> Path | None:
    """Look up where a track lives on disk. Used by the playback controller."""
    with connect(c) as conn:
        cursor = conn.execute("SELECT source_path FROM tracks WHERE id = ?", (track_id,))
        row = cursor.fetchone()
        return Path(row["source_path"]) if row else None


def list_albums(c: Config) -> list[Album]:
    with connect(c) as conn:
        cursor = conn.execute(f"{ALBUMS_QUERY} ORDER BY al.title COLLATE NOCASE")
        return [Album.from_row(row) for row in cursor]


def get_album(c: Config, album_id: int) -> Album | None:
    with connect(c) as conn:
        cursor = conn.execute(f"{ALBUMS_QUERY} WHERE al.id = ?", (album_id,))
        row = cursor.fetchone()
        return Album.from_row(row) if row else None


def get_tracks_of_album(c: Config, album_id: int) -> list[Track]:
    with connect(c) as conn:
        cursor = conn.execute(
            f"{TRACKS_QUERY} WHERE t.album_id = ? ORDER BY t.source_path",
            (album_id,),
        )
        return [Track.from_row(row) for row in cursor]


def list_artists(c: Config) -> list[Artist]:
    with connect(c) as conn:
        cursor = conn.execute(
            "SELECT id, name, canonical_name FROM artists ORDER BY canonical_name"
        )
        return [
            Artist(id=row["id"], name=row["name"], canonical_name=row["canonical_name"])
            for row in cursor
        ]


def _split(xs: str) -> list[str]:
    """Split the concatenated results of a GROUP_CONCAT."""
    return sorted(xs.split(r" \\ "), key=str.lower)
