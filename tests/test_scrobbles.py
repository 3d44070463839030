import dataclasses
from datetime import datetime

from conftest import lastfm_item, make_track
from src.data.scrobbles import EnrichedTrack, RawScrobble, parse_scrobble, played_label
from src.visuals.core.constants import DEFAULT_PALETTE


def test_parse_played_scrobble():
    s = parse_scrobble(lastfm_item(2))

    assert s.name == "Track 2"
    assert s.artist == "Artist 2"
    assert s.timestamp == 1700000000 - 120
    assert s.is_now_playing is False
    assert s.art_url() == "https://img.example/2.jpg"


def test_parse_now_playing_scrobble():
    s = parse_scrobble(lastfm_item(0, now_playing=True))
    assert s.is_now_playing is True
    assert s.timestamp is None


def test_art_url_fallbacks():
    assert parse_scrobble(lastfm_item(1, art="")).art_url() is None
    s = RawScrobble(
        name="n",
        artist="a",
        url="u",
        images=(("small", "s.jpg"), ("medium", "m.jpg"), ("large", "")),
    )
    assert s.art_url() == "m.jpg"
    s = RawScrobble(
        name="n",
        artist="a",
        url="u",
        images=(("a", ""), ("b", ""), ("c", ""), ("mega", "big.jpg")),
    )
    assert s.art_url() == "big.jpg"


def test_enriched_track_wire_format():
    track = make_track(3, inline="data:image/jpeg;base64,AAAA")
    data = track.to_dict()

    assert set(data) == {
        "name",
        "artist",
        "url",
        "albumArtUrl",
        "inlineImage",
        "colors",
        "timestamp",
        "isNowPlaying",
    }
    assert data["colors"] == [[30, 20, 30]] * 5
    assert EnrichedTrack.from_dict(data) == track
    assert track.image_src == "data:image/jpeg;base64,AAAA"


def test_from_dict_without_colors_uses_default_palette():
    track = EnrichedTrack.from_dict({"name": "x", "albumArtUrl": "https://a/b.jpg"})
    assert track.colors == DEFAULT_PALETTE
    assert track.image_src == "https://a/b.jpg"


def test_played_label_now_playing_and_unknown():
    playing = dataclasses.replace(make_track(0), is_now_playing=True, timestamp=None)
    assert played_label(playing) == "Now Playing"
    assert played_label(dataclasses.replace(make_track(1), timestamp=None)) == ""


def test_played_label_recent():
    t = make_track(0)
    assert played_label(t, now=t.timestamp + 30) == "just now"
    assert played_label(t, now=t.timestamp + 60) == "1 minute ago"
    assert played_label(t, now=t.timestamp + 5 * 60 + 10) == "5 minutes ago"


def test_played_label_old_plays_show_date():
    t = make_track(0)
    now = t.timestamp + 30 * 86400
    expected = datetime.fromtimestamp(t.timestamp).strftime("%d %b %Y")
    assert played_label(t, now=now) == expected
