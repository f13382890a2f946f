import io
import re

import pytest

from musikmo.storage import UploadPart, UploadRejected, asset_path, save_uploads, unique_filename


def _parts(cover_type="image/png", song_type="audio/mpeg"):
    return {
        "cover": UploadPart("front.PNG", cover_type, io.BytesIO(b"img")),
        "song": UploadPart("track.mp3", song_type, io.BytesIO(b"audio")),
    }


def test_unique_filename_format():
    name = unique_filename("cover", "my cover.jpeg")
    assert re.fullmatch(r"cover-\d+-\d+\.jpeg", name)
    assert unique_filename("song", "noext").startswith("song-")
    assert "." not in unique_filename("song", "noext")


def test_save_uploads_writes_into_field_directories(settings):
    paths = save_uploads(_parts())

    assert paths["cover"].startswith("/covers/cover-")
    assert paths["cover"].endswith(".PNG")
    assert paths["song"].startswith("/songs/song-")
    assert asset_path(paths["cover"]).read_bytes() == b"img"
    assert asset_path(paths["song"]).parent == settings.songs_dir


@pytest.mark.parametrize("field", ["cover", "song"])
def test_missing_part_is_rejected(settings, field):
    parts = _parts()
    parts[field] = None
    with pytest.raises(UploadRejected):
        save_uploads(parts)


def test_wrong_media_type_rejects_before_anything_is_written(settings):
    with pytest.raises(UploadRejected, match="image"):
        save_uploads(_parts(cover_type="text/plain"))

    assert not settings.songs_dir.exists() or list(settings.songs_dir.iterdir()) == []
    assert not settings.covers_dir.exists() or list(settings.covers_dir.iterdir()) == []


def test_non_audio_song_is_rejected(settings):
    with pytest.raises(UploadRejected, match="audio"):
        save_uploads(_parts(song_type="image/png"))


def test_asset_path_rejects_foreign_paths(settings):
    with pytest.raises(ValueError):
        asset_path("/etc/passwd")
