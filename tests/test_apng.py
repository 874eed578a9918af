"""Tests for framecheck.apng module."""

import io

import numpy as np
import pytest
from PIL import Image

from framecheck.apng import ApngReader, ApngWriter, open_animation
from framecheck.error_handling import ResourceError
from framecheck.io import LocalFileSystem

from animation_helpers import distinct_frames, solid_frame, write_animation


class TestApngWriter:
    """Tests for ApngWriter class."""

    @pytest.mark.fast
    def test_round_trip(self, memory_fs, golden_path):
        frames = distinct_frames(4)
        write_animation(memory_fs, golden_path, frames, fps=10)

        with ApngReader(memory_fs.open_read(golden_path)) as reader:
            assert (reader.width, reader.height) == (8, 8)
            assert reader.fps == 10
            assert reader.frame_count == 4
            for expected in frames:
                assert np.array_equal(reader.read_next_frame(), expected)
            assert reader.read_next_frame() is None

    @pytest.mark.fast
    def test_pillow_sees_animation(self, memory_fs, golden_path):
        write_animation(memory_fs, golden_path, distinct_frames(3), fps=25)

        with Image.open(io.BytesIO(memory_fs.read_bytes(golden_path))) as image:
            assert image.format == "PNG"
            assert image.n_frames == 3
            assert image.info["duration"] == pytest.approx(40.0)

    @pytest.mark.fast
    def test_frames_written_counter(self, memory_fs, golden_path):
        writer = ApngWriter(memory_fs.open_write(golden_path), fps=5)
        assert writer.frames_written == 0
        writer.write_image(solid_frame((1, 2, 3)))
        writer.write_image(solid_frame((4, 5, 6)))
        assert writer.frames_written == 2
        writer.close()

    @pytest.mark.fast
    def test_close_is_idempotent(self, memory_fs, golden_path):
        writer = ApngWriter(memory_fs.open_write(golden_path), fps=5)
        writer.write_image(solid_frame((1, 2, 3)))
        writer.close()
        writer.close()

        assert memory_fs.exists(golden_path)
        with pytest.raises(ResourceError):
            writer.write_image(solid_frame((1, 2, 3)))

    @pytest.mark.fast
    def test_smaller_frames_are_padded(self, memory_fs, golden_path):
        big = solid_frame((200, 0, 0), size=(6, 6))
        small = solid_frame((0, 200, 0), size=(3, 2))
        write_animation(memory_fs, golden_path, [big, small], fps=10)

        with ApngReader(memory_fs.open_read(golden_path)) as reader:
            reader.read_next_frame()
            second = reader.read_next_frame()

        assert second.shape == (6, 6, 4)
        assert np.array_equal(second[:2, :3], small)
        assert np.all(second[2:, :, 3] == 0)

    @pytest.mark.fast
    def test_larger_frames_are_clipped(self, memory_fs, golden_path):
        write_animation(
            memory_fs,
            golden_path,
            [solid_frame((1, 1, 1), size=(4, 4)), solid_frame((9, 9, 9), size=(8, 8))],
            fps=10,
        )

        with ApngReader(memory_fs.open_read(golden_path)) as reader:
            assert (reader.width, reader.height) == (4, 4)
            reader.read_next_frame()
            assert reader.read_next_frame().shape == (4, 4, 4)

    @pytest.mark.fast
    @pytest.mark.parametrize("fps", [0, 70000])
    def test_fps_bounds(self, fps):
        with pytest.raises(ValueError, match="fps must be between"):
            ApngWriter(io.BytesIO(), fps)

    @pytest.mark.fast
    def test_failed_write_keeps_previous_file(self, tmp_path, monkeypatch):
        target = tmp_path / "delta.png"
        target.write_bytes(b"previous")

        writer = ApngWriter(LocalFileSystem().open_write(target), 10)
        writer.write_image(solid_frame((1, 2, 3)))

        def broken_encoder(frame):
            raise OSError("disk full")

        monkeypatch.setattr("framecheck.apng._encoded_image_data", broken_encoder)
        with pytest.raises(ResourceError, match="write animation frame"):
            writer.write_image(solid_frame((4, 5, 6)))
        writer.close()

        assert target.read_bytes() == b"previous"
        assert list(tmp_path.iterdir()) == [target]

    @pytest.mark.fast
    def test_failed_write_is_not_published(self, memory_fs, golden_path, monkeypatch):
        def broken_padding(*args):
            raise OSError("boom")

        writer = ApngWriter(memory_fs.open_write(golden_path), 10)
        monkeypatch.setattr("framecheck.apng.pad_frame", broken_padding)
        with pytest.raises(ResourceError):
            writer.write_image(solid_frame((1, 2, 3)))
        writer.close()

        assert not memory_fs.exists(golden_path)


class TestApngReader:
    """Tests for ApngReader class."""

    @pytest.mark.fast
    def test_reset_rewinds(self, memory_fs, golden_path):
        frames = distinct_frames(3)
        write_animation(memory_fs, golden_path, frames, fps=10)

        with ApngReader(memory_fs.open_read(golden_path)) as reader:
            reader.read_next_frame()
            reader.read_next_frame()
            assert reader.current_frame_index == 2

            reader.reset()
            assert reader.current_frame_index == 0
            assert not reader.is_finished()
            for expected in frames:
                assert np.array_equal(reader.read_next_frame(), expected)
            assert reader.is_finished()

    @pytest.mark.fast
    def test_repeated_partial_rewinds(self, memory_fs, golden_path):
        frames = distinct_frames(4)
        write_animation(memory_fs, golden_path, frames, fps=10)

        with ApngReader(memory_fs.open_read(golden_path)) as reader:
            for stop in (2, 1, 3, 4):
                for expected in frames[:stop]:
                    assert np.array_equal(reader.read_next_frame(), expected)
                reader.reset()
            assert np.array_equal(reader.read_next_frame(), frames[0])

    @pytest.mark.fast
    def test_is_finished(self, memory_fs, golden_path):
        write_animation(memory_fs, golden_path, distinct_frames(2), fps=10)

        with ApngReader(memory_fs.open_read(golden_path)) as reader:
            assert not reader.is_finished()
            reader.read_next_frame()
            reader.read_next_frame()
            assert reader.is_finished()

    @pytest.mark.fast
    def test_reads_gif_goldens(self, tmp_path):
        gif_path = tmp_path / "golden.gif"
        images = [Image.new("RGB", (10, 10), (i * 80, 0, 0)) for i in range(3)]
        images[0].save(gif_path, save_all=True, append_images=images[1:], duration=100, loop=0)

        with open_animation(gif_path) as reader:
            assert reader.frame_count == 3
            assert reader.fps == 10
            assert reader.read_next_frame().shape == (10, 10, 4)

    @pytest.mark.fast
    @pytest.mark.parametrize(
        "duration,expected_fps",
        [(30, 30), (40, 25), (60, 15), (70, 15), (80, 12), (10, 100), (90, 11)],
    )
    def test_gif_delay_maps_back_to_frame_rate(self, tmp_path, duration, expected_fps):
        gif_path = tmp_path / "golden.gif"
        images = [Image.new("RGB", (4, 4), (i * 80, 0, 0)) for i in range(2)]
        images[0].save(
            gif_path, save_all=True, append_images=images[1:], duration=duration, loop=0
        )

        with open_animation(gif_path) as reader:
            assert reader.fps == expected_fps

    @pytest.mark.fast
    def test_still_png_uses_default_fps(self, tmp_path):
        png_path = tmp_path / "still.png"
        Image.new("RGBA", (5, 5), (1, 2, 3, 255)).save(png_path)

        with open_animation(png_path) as reader:
            assert reader.frame_count == 1
            assert reader.fps == 1

    @pytest.mark.fast
    def test_garbage_raises_resource_error(self, tmp_path):
        bad_path = tmp_path / "bad.png"
        bad_path.write_bytes(b"definitely not an image")

        with pytest.raises(ResourceError, match="open animation"):
            open_animation(bad_path)

    @pytest.mark.fast
    def test_missing_file_raises_resource_error(self, tmp_path):
        with pytest.raises(ResourceError):
            open_animation(tmp_path / "missing.png")
