import pytest

from musikmo.client import CatalogClient, ClientError
from musikmo.player import EMPTY_MESSAGE, CatalogView, Player, filter_songs, format_time

CATALOG = [
    {"id": 1, "title": "Song A", "artist": "X", "songPath": "/songs/a.mp3"},
    {"id": 2, "title": "B", "artist": "Artist Y", "songPath": "/songs/b.mp3"},
]


def test_filter_matches_title_or_artist_case_insensitively():
    assert filter_songs(CATALOG, "a") == CATALOG
    assert filter_songs(CATALOG, "ARTIST") == [CATALOG[1]]
    assert filter_songs(CATALOG, "zzz") == []
    assert filter_songs(CATALOG, "") == CATALOG


@pytest.mark.parametrize("seconds, expected", [(0, "0:00"), (None, "0:00"), (59.9, "0:59"), (61, "1:01"), (600, "10:00")])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_player_toggle_and_seek():
    player = Player("http://host")
    player.toggle()
    assert player.state == Player.STOPPED

    assert player.play(1, CATALOG)
    assert player.state == Player.PLAYING
    assert player.source == "http://host/songs/b.mp3"
    assert player.active_index == 1
    assert player.info == "B - Artist Y"

    player.toggle()
    assert player.state == Player.PAUSED
    player.toggle()
    assert player.state == Player.PLAYING

    player.on_metadata(125.7)
    assert player.seek_max == 125
    player.on_time_update(10.4)
    assert player.seek_value == 10

    player.begin_drag()
    player.seek(80)
    player.on_time_update(11)
    assert player.position == 80
    player.end_drag()
    player.on_time_update(81)
    assert player.position == 81

    player.seek(500)
    assert player.position == 125.7


def test_player_advances_and_stops_after_last():
    player = Player()
    player.play(0, CATALOG)
    player.on_ended()
    assert player.index == 1
    assert player.state == Player.PLAYING

    player.on_ended()
    assert player.index == 1
    assert player.state == Player.ENDED

    assert not player.play(5)


class FailingClient:
    def __init__(self, health=None):
        self._health = health

    def health(self):
        if self._health is None:
            raise ClientError("connection refused")
        return self._health

    def list_songs(self):
        raise ClientError("boom", 500)

    def create_song(self, *args):
        raise ClientError("Title and artist are required", 400)


def test_view_stops_on_unreachable_server():
    view = CatalogView(FailingClient())
    view.start()
    assert view.state == CatalogView.ERROR
    assert "connection refused" in view.error


def test_view_stops_on_unhealthy_server():
    view = CatalogView(FailingClient({"status": "ERROR", "message": "songs.json does not exist"}))
    view.start()
    assert view.state == CatalogView.ERROR
    assert "songs.json" in view.error


def test_view_keeps_prior_songs_when_refetch_fails():
    view = CatalogView(FailingClient({"status": "OK"}))
    view.state = CatalogView.READY
    view.songs = list(CATALOG)
    view.load()
    assert view.state == CatalogView.READY
    assert view.songs == CATALOG
    assert view.error == "boom"


def test_failed_upload_keeps_dialog_open():
    view = CatalogView(FailingClient({"status": "OK"}))
    view.open_upload()
    assert view.submit_upload("", "", None, None) is None
    assert view.dialog_open
    assert "Title and artist are required" in view.error


def test_view_against_running_app(client, upload_files):
    view = CatalogView(CatalogClient(http=client))
    view.start()
    assert view.state == CatalogView.READY
    assert view.visible == []
    assert view.placeholder == EMPTY_MESSAGE

    view.open_upload()
    created = view.submit_upload("Test", "Tester", upload_files["cover"], upload_files["song"])
    assert created["id"] == 1
    assert not view.dialog_open
    assert view.songs == [created]

    assert view.search("TEST") == [created]
    assert view.search("zzz") == []
    assert view.placeholder == EMPTY_MESSAGE
