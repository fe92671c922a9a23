from fractions import Fraction

import av
import pytest

from video_similarity import DEFAULT_THRESHOLD, compare, encode
from video_similarity.errors import ConfigurationError, EmptySequence, VideoDecodeError
from video_similarity.utils import fingerprint_video, iter_frames, load_video

from conftest import make_scene

FPS = 10


def write_video(path, frames, fps=FPS):
    container = av.open(str(path), mode="w")
    stream = container.add_stream("mpeg4", rate=fps)
    stream.width = frames[0].shape[1]
    stream.height = frames[0].shape[0]
    stream.pix_fmt = "yuv420p"
    stream.bit_rate = 2_000_000
    for i, pixels in enumerate(frames):
        frame = av.VideoFrame.from_ndarray(pixels, format="rgb24")
        frame.pts = i
        frame.time_base = Fraction(1, fps)
        for packet in stream.encode(frame):
            container.mux(packet)
    for packet in stream.encode():
        container.mux(packet)
    container.close()


@pytest.fixture(scope="module")
def clip_frames():
    return [make_scene(100 + i) for i in range(12)]


@pytest.fixture(scope="module")
def clip(tmp_path_factory, clip_frames):
    path = tmp_path_factory.mktemp("videos") / "clip.mp4"
    write_video(path, clip_frames)
    return path


def test_iter_frames_decodes_every_frame(clip):
    frames = list(iter_frames(clip))
    assert [f.frame_index for f in frames] == list(range(12))
    assert frames[0].pixels.shape == (96, 128, 3)
    assert (frames[0].width, frames[0].height) == (128, 96)
    assert frames[0].channel_layout == "rgb"


def test_sample_rate_and_max_frames(clip):
    assert [f.frame_index for f in iter_frames(clip, sample_rate=3)] == [0, 3, 6, 9]
    assert len(list(iter_frames(clip, max_frames=5))) == 5


def test_max_resolution_keeps_aspect(clip):
    frame = next(iter_frames(clip, max_resolution=48))
    assert frame.pixels.shape == (48, 64, 3)


def test_load_video_reports_fps(clip):
    frames, fps = load_video(clip, sample_rate=2)
    assert len(frames) == 6
    assert fps == pytest.approx(FPS)


def test_decoded_video_matches_source_frames(clip, clip_frames):
    decoded = fingerprint_video(clip)
    assert len(decoded) == 12
    assert decoded.source_id == str(clip)
    assert compare(decoded, encode(clip_frames)).score >= DEFAULT_THRESHOLD


def test_interval_sampling(clip):
    sequence = fingerprint_video(clip, interval=0.5)
    assert sequence.cadence_unit == "seconds"
    assert sequence.cadence == 0.5
    assert 2 <= len(sequence) <= 4


def test_missing_file(tmp_path):
    with pytest.raises(VideoDecodeError, match="missing.mp4"):
        list(iter_frames(tmp_path / "missing.mp4"))


def test_not_a_video(tmp_path):
    path = tmp_path / "notes.mp4"
    path.write_text("this is not a video")
    with pytest.raises(VideoDecodeError):
        fingerprint_video(path)


def test_max_frames_zero_is_unlimited(clip):
    assert len(list(iter_frames(clip, max_frames=0))) == 12


@pytest.mark.parametrize("kwargs", [{"sample_rate": 0}, {"interval": 0.0}, {"interval": -1.0}])
def test_invalid_sampling(clip, kwargs):
    with pytest.raises(ConfigurationError):
        list(iter_frames(clip, **kwargs))


def test_empty_sequence_names_the_video(monkeypatch, clip):
    monkeypatch.setattr("video_similarity.utils.video.iter_frames", lambda *a, **k: iter(()))
    with pytest.raises(EmptySequence, match="clip.mp4"):
        fingerprint_video(clip)
