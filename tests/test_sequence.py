import dataclasses

import numpy as np
import pytest

from video_similarity import FingerprintConfig, FingerprintSequence, encode, fingerprint_frame
from video_similarity.distance import ExactDistance
from video_similarity.errors import ConfigurationError, EmptySequence, InvalidFrame
from video_similarity.utils.video import SampledFrame


def test_encode_preserves_frame_order(video_frames, video_sequence):
    assert len(video_sequence) == len(video_frames)
    assert list(video_sequence) == [fingerprint_frame(f).token for f in video_frames]


def test_encode_tags_sequence(video_frames):
    seq = encode(video_frames, cadence=0.5, cadence_unit="seconds", source_id="clip.mp4")
    assert seq.source_id == "clip.mp4"
    assert seq.cadence == 0.5
    assert seq.cadence_unit == "seconds"
    assert seq.hash_method == "phash"
    assert seq.hash_bits == 64


def test_encode_rejects_zero_frames():
    with pytest.raises(EmptySequence):
        encode([])


def test_single_frame_sequence_is_valid(scene):
    seq = encode([scene])
    assert len(seq) == 1


def test_invalid_frame_is_not_skipped(video_frames):
    frames = video_frames[:3] + [np.zeros((0, 0), dtype=np.uint8)] + video_frames[3:]
    with pytest.raises(InvalidFrame):
        encode(frames)


def test_parallel_encoding_matches_sequential(video_frames):
    sequential = encode(video_frames)
    parallel = encode(video_frames, config=FingerprintConfig(workers=4))
    assert parallel.tokens == sequential.tokens


def test_encode_accepts_sampler_records(video_frames):
    records = [
        SampledFrame(i, frame, frame.shape[1], frame.shape[0]) for i, frame in enumerate(video_frames)
    ]
    assert encode(records).tokens == encode(video_frames).tokens


def test_bgr_records_use_their_layout(video_frames):
    records = [
        SampledFrame(i, np.ascontiguousarray(f[..., ::-1]), f.shape[1], f.shape[0], "bgr")
        for i, f in enumerate(video_frames)
    ]
    assert encode(records).tokens == encode(video_frames).tokens


def test_sequence_is_immutable(video_sequence):
    with pytest.raises(dataclasses.FrozenInstanceError):
        video_sequence.tokens = ()
    assert isinstance(FingerprintSequence(tokens=["ab", "cd"], hash_bits=8).tokens, tuple)


def test_tokens_must_have_fixed_length():
    with pytest.raises(ConfigurationError):
        FingerprintSequence(tokens=("ab", "abc"), hash_bits=8)


@pytest.mark.parametrize(
    "kwargs",
    [{"cadence": 0}, {"cadence_unit": "minutes"}, {"hash_bits": 0}],
)
def test_invalid_sequence_metadata(kwargs):
    with pytest.raises(ConfigurationError):
        FingerprintSequence(tokens=("ab",), **{"hash_bits": 8, **kwargs})


def test_text_round_trip(video_sequence):
    seq = dataclasses.replace(video_sequence, source_id="my clip (1).mp4", cadence=2)
    text = seq.dumps()
    lines = text.splitlines()
    assert lines[0].startswith("# video-fingerprint v1 ")
    assert lines[1:] == list(seq.tokens)
    assert FingerprintSequence.loads(text) == seq


def test_save_and_load(tmp_path, video_sequence):
    path = tmp_path / "clip.vfp"
    video_sequence.save(path)
    assert FingerprintSequence.load(path) == video_sequence


@pytest.mark.parametrize("cadence", [0.1234567, 1 / 3, 2.5, 30])
def test_cadence_survives_text_round_trip(video_sequence, cadence):
    seq = dataclasses.replace(video_sequence, cadence=cadence, cadence_unit="seconds")
    assert FingerprintSequence.loads(seq.dumps()).cadence == cadence


def test_whole_frame_cadence_is_written_as_an_integer(video_sequence):
    assert " cadence=3 " in dataclasses.replace(video_sequence, cadence=3).dumps()


def test_load_rejects_binary_file(tmp_path):
    path = tmp_path / "corrupt.vfp"
    path.write_bytes(b"\xff\xfe garbage\n")
    with pytest.raises(ConfigurationError, match="corrupt.vfp"):
        FingerprintSequence.load(path)


def test_load_names_the_file_on_bad_content(tmp_path):
    path = tmp_path / "headless.vfp"
    path.write_text("c3e1a0f0781e0f87\n")
    with pytest.raises(ConfigurationError, match="headless.vfp"):
        FingerprintSequence.load(path)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "c3e1a0f0781e0f87\n",
        "# video-fingerprint v1 method=phash bits=64\nc3e1a0f0781e0f87\n",
        "# video-fingerprint v1 method=phash bits=sixty cadence=1 unit=frames source=x\n",
        "# video-fingerprint v1 method=phash bits=64 cadence=1 unit=frames source=x\nabc\n",
    ],
)
def test_malformed_text_is_rejected(text):
    with pytest.raises(ConfigurationError):
        FingerprintSequence.loads(text)


def test_fingerprints_decode_tokens(video_sequence):
    fps = video_sequence.fingerprints()
    assert [fp.token for fp in fps] == list(video_sequence.tokens)


def test_without_repeats_drops_consecutive_duplicates():
    seq = FingerprintSequence(tokens=("aaaa", "aaaa", "bbbb", "bbbb", "aaaa"), hash_bits=16)
    assert seq.without_repeats().tokens == ("aaaa", "bbbb", "aaaa")


def test_without_repeats_tolerance():
    # 0x0000 -> 0x0001 differs in 1 of 16 bits
    seq = FingerprintSequence(tokens=("0000", "0001", "ffff"), hash_bits=16)
    assert seq.without_repeats(tolerance=0.0625).tokens == ("0000", "ffff")
    assert seq.without_repeats(tolerance=0.0).tokens == ("0000", "0001", "ffff")


def test_without_repeats_custom_distance():
    seq = FingerprintSequence(tokens=("x1", "x1", "y2"), hash_bits=8)
    result = seq.without_repeats(distance=ExactDistance())
    assert result.tokens == ("x1", "y2")
    assert result.source_id == seq.source_id


def test_without_repeats_rejects_bad_tolerance(video_sequence):
    with pytest.raises(ConfigurationError):
        video_sequence.without_repeats(tolerance=1.5)


def test_compatibility(video_frames):
    phash = encode(video_frames[:2])
    dhash = encode(video_frames[:2], config=FingerprintConfig(hash_method="dhash"))
    assert phash.is_compatible(encode(video_frames[5:]))
    assert not phash.is_compatible(dhash)
