from audiokiosk.audiotags import Picture
from audiokiosk.config import Config
from audiokiosk.covers import album_cover_path, cover_extension, extract_covers, track_cover_path
from conftest import JPEG_BYTES, PNG_BYTES


def test_cover_extension() -> None:
    assert cover_extension(Picture(format="image/png", data=b"")) == "png"
    assert cover_extension(Picture(format="PNG", data=b"")) == "png"
    assert cover_extension(Picture(format="image/jpeg", data=b"")) == "jpg"
    assert cover_extension(Picture(format="", data=b"")) == "jpg"


def test_extract_covers_without_pictures(config: Config) -> None:
    assert extract_covers(config, [], track_id=1, album_id=1) is None
    assert not config.cover_art_dir.exists()


def test_extract_covers_uses_first_picture(config: Config) -> None:
    pictures = [
        Picture(format="image/jpeg", data=JPEG_BYTES),
        Picture(format="image/png", data=PNG_BYTES),
    ]
    path = extract_covers(config, pictures, track_id=7, album_id=3)
    assert path == config.cover_art_dir / "tracks" / "7.jpg"
    assert path.read_bytes() == JPEG_BYTES
    assert album_cover_path(config, 3) == config.cover_art_dir / "albums" / "3.jpg"


def test_track_cover_is_overwritten(config: Config) -> None:
    extract_covers(config, [Picture(format="image/jpeg", data=JPEG_BYTES)], track_id=1, album_id=None)
    extract_covers(config, [Picture(format="image/png", data=PNG_BYTES)], track_id=1, album_id=None)
    assert track_cover_path(config, 1) == config.cover_art_dir / "tracks" / "1.png"
    assert not (config.cover_art_dir / "tracks" / "1.jpg").exists()
    assert track_cover_path(config, 1).read_bytes() == PNG_BYTES  # type: ignore


def test_album_cover_first_writer_wins(config: Config) -> None:
    extract_covers(config, [Picture(format="image/jpeg", data=JPEG_BYTES)], track_id=1, album_id=5)
    extract_covers(config, [Picture(format="image/png", data=PNG_BYTES)], track_id=2, album_id=5)
    extract_covers(config, [Picture(format="image/jpeg", data=b"other")], track_id=3, album_id=5)
    assert album_cover_path(config, 5) == config.cover_art_dir / "albums" / "5.jpg"
    assert (config.cover_art_dir / "albums" / "5.jpg").read_bytes() == JPEG_BYTES
    assert not (config.cover_art_dir / "albums" / "5.png").exists()
    # Every track still received its own cover.
    assert track_cover_path(config, 2) == config.cover_art_dir / "tracks" / "2.png"
    assert track_cover_path(config, 3).read_bytes() == b"other"  # type: ignore
