from datetime import timedelta

import pytest

from voicegate.media.utils import (
    MONO_FRAME_SIZE,
    SAMPLE_RATE,
    SAMPLE_SIZE,
    byte_count_to_timestamp,
    sample_count_to_timestamp,
    timestamp_to_byte_count,
    timestamp_to_sample_count,
)


def test_one_second_mono_is_sample_rate():
    assert timestamp_to_sample_count(timedelta(seconds=1), False) == SAMPLE_RATE


def test_one_frame_mono_is_frame_size():
    assert timestamp_to_sample_count(timedelta(milliseconds=20), False) == MONO_FRAME_SIZE


@pytest.mark.parametrize("millis", [0, 1, 20, 999, 1000, 123456])
def test_stereo_doubles_sample_count(millis):
    t = timedelta(milliseconds=millis)
    assert timestamp_to_sample_count(t, True) == 2 * timestamp_to_sample_count(t, False)


@pytest.mark.parametrize("stereo", [False, True])
@pytest.mark.parametrize("millis", [0, 1, 20, 999, 1000, 123456])
def test_sample_round_trip(millis, stereo):
    t = timedelta(milliseconds=millis)
    assert sample_count_to_timestamp(timestamp_to_sample_count(t, stereo), stereo) == t


@pytest.mark.parametrize("stereo", [False, True])
@pytest.mark.parametrize("millis", [0, 7, 20, 5000])
def test_byte_round_trip(millis, stereo):
    t = timedelta(milliseconds=millis)
    count = timestamp_to_byte_count(t, stereo)
    assert count == SAMPLE_SIZE * timestamp_to_sample_count(t, stereo)
    assert byte_count_to_timestamp(count, stereo) == t


def test_sub_millisecond_parts_are_truncated():
    exact = timedelta(milliseconds=1)
    assert timestamp_to_sample_count(timedelta(microseconds=1500), False) == (
        timestamp_to_sample_count(exact, False)
    )


def test_partial_sample_bytes_round_down():
    full = timestamp_to_byte_count(timedelta(milliseconds=3), False)
    assert byte_count_to_timestamp(full + SAMPLE_SIZE - 1, False) == timedelta(milliseconds=3)


def test_negative_timestamp_rejected():
    with pytest.raises(ValueError):
        timestamp_to_sample_count(timedelta(milliseconds=-1), False)


def test_negative_counts_rejected():
    with pytest.raises(ValueError):
        sample_count_to_timestamp(-1, True)
    with pytest.raises(ValueError):
        byte_count_to_timestamp(-4, False)