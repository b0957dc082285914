from datetime import timedelta

from voicegate.media.metadata import Metadata
from voicegate.media.utils import SAMPLE_RATE


def _ffprobe(**overrides):
    value = {
        "format": {
            "duration": "12.5",
            "start_time": "0.25",
            "tags": {"title": "Song", "artist": "Band", "date": "2020"},
        },
        "streams": [
            {"codec_type": "video", "channels": 9},
            {"codec_type": "audio", "channels": 2, "sample_rate": "44100"},
        ],
    }
    value.update(overrides)
    return value


def test_ffprobe_fields():
    meta = Metadata.from_ffprobe_json(_ffprobe())
    assert meta.track == "Song"
    assert meta.artist == "Band"
    assert meta.date == "2020"
    assert meta.channels == 2
    assert meta.sample_rate == 44100
    assert meta.duration == timedelta(seconds=12.5)
    assert meta.start_time == timedelta(seconds=0.25)
    assert meta.title is None and meta.source_url is None


def test_ffprobe_negative_start_is_clamped():
    value = _ffprobe(format={"start_time": "-0.5"})
    meta = Metadata.from_ffprobe_json(value)
    assert meta.start_time == timedelta(0)
    assert meta.duration is None


def test_ffprobe_without_audio_stream():
    value = _ffprobe(streams=[{"codec_type": "video", "channels": 2}])
    meta = Metadata.from_ffprobe_json(value)
    assert meta.channels is None
    assert meta.sample_rate is None


def test_ffprobe_non_object_gives_empty():
    assert Metadata.from_ffprobe_json([1, 2, 3]) == Metadata()


def test_ffprobe_ignores_unparsable_numbers():
    value = _ffprobe(format={"duration": "abc"})
    value["streams"] = [{"codec_type": "audio", "sample_rate": 44100}]
    meta = Metadata.from_ffprobe_json(value)
    assert meta.duration is None
    assert meta.sample_rate is None


def test_ytdl_prefers_primary_fields():
    value = {
        "track": "T",
        "artist": "A",
        "uploader": "U",
        "release_date": "R",
        "upload_date": "D",
        "channel": "C",
        "duration": 3,
        "webpage_url": "https://example.com/watch",
        "title": "Title",
        "thumbnail": "https://example.com/thumb.jpg",
    }
    meta = Metadata.from_ytdl_output(value)
    assert meta.track == "T"
    assert meta.artist == "A"
    assert meta.date == "R"
    assert meta.channel == "C"
    assert meta.duration == timedelta(seconds=3)
    assert meta.source_url == "https://example.com/watch"
    assert meta.title == "Title"
    assert meta.thumbnail == "https://example.com/thumb.jpg"
    assert meta.channels == 2
    assert meta.sample_rate == SAMPLE_RATE


def test_ytdl_falls_back():
    meta = Metadata.from_ytdl_output({"uploader": "U", "upload_date": "D"})
    assert meta.artist == "U"
    assert meta.date == "D"
    assert meta.duration is None


def test_take_moves_everything():
    meta = Metadata.from_ytdl_output({"title": "Title", "duration": 1.5})
    snapshot = Metadata(**vars(meta))
    moved = meta.take()
    assert moved == snapshot
    assert meta == Metadata()