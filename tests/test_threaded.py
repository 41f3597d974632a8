"""Tests for conv.threaded module."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

import conv.threaded
from conv.errors import ProcessingFailed
from conv.kernel import blur_kernel, sharpen_kernel
from conv.standard import Standard, convolve_rows
from conv.threaded import Threaded, partition_rows


@pytest.fixture
def photo() -> np.ndarray:
    """Random 37 x 29 RGBA image with a fixed seed."""
    return np.random.default_rng(11).integers(0, 256, size=(37, 29, 4), dtype=np.uint8)


class TestPartitionRows:
    """Work units cover every row exactly once."""

    @pytest.mark.parametrize("height", [1, 2, 7, 16, 37, 100])
    @pytest.mark.parametrize("workers", [1, 2, 3, 8, 16, 64])
    def test_partition_is_complete_and_balanced(self, height, workers):
        blocks = partition_rows(height, workers)
        assert len(blocks) == min(height, workers)
        assert blocks[0][0] == 0
        assert blocks[-1][1] == height
        for (_, end), (start, _) in zip(blocks, blocks[1:]):
            assert end == start
        sizes = [end - start for start, end in blocks]
        assert min(sizes) >= 1
        assert max(sizes) - min(sizes) <= 1

    def test_extra_rows_go_first(self):
        assert partition_rows(10, 4) == [(0, 3), (3, 6), (6, 8), (8, 10)]

    def test_fewer_rows_than_workers(self):
        assert partition_rows(3, 8) == [(0, 1), (1, 2), (2, 3)]

    def test_no_rows(self):
        assert partition_rows(0, 4) == []

    def test_zero_threads_rejected(self):
        with pytest.raises(ValueError):
            Threaded(blur_kernel(3)).run(np.zeros((4, 4), dtype=np.uint8), num_threads=0)

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            partition_rows(10, 0)


class TestDeterminism:
    """Output never depends on how rows are split."""

    @pytest.mark.parametrize("kernel", [blur_kernel(3), blur_kernel(7, "gaussian"), sharpen_kernel(5)])
    def test_worker_counts_agree(self, photo, kernel):
        expected = Standard(kernel).run(photo)
        for workers in (1, 2, 8):
            output = Threaded(kernel).run(photo, num_threads=workers)
            assert output.tobytes() == expected.tobytes()

    def test_more_workers_than_rows(self):
        source = np.random.default_rng(2).integers(0, 256, size=(3, 50), dtype=np.uint8)
        kernel = blur_kernel(5)
        np.testing.assert_array_equal(
            Threaded(kernel).run(source, num_threads=16), Standard(kernel).run(source)
        )

    def test_default_thread_count(self, photo):
        kernel = sharpen_kernel(3)
        np.testing.assert_array_equal(Threaded(kernel).run(photo), Standard(kernel).run(photo))

    def test_shared_executor_reused(self, photo):
        kernel = blur_kernel(3)
        with ThreadPoolExecutor(max_workers=4) as executor:
            first = Threaded(kernel).run(photo, num_threads=4, executor=executor)
            second = Threaded(kernel).run(photo, num_threads=4, executor=executor)
            other = Threaded(sharpen_kernel(3)).run(photo[..., :3], num_threads=3, executor=executor)
        np.testing.assert_array_equal(first, second)
        assert other.shape == (37, 29, 3)

    def test_preserve_alpha(self, photo):
        output = Threaded(blur_kernel(3), preserve_alpha=True).run(photo, num_threads=5)
        np.testing.assert_array_equal(output[..., 3], photo[..., 3])


class TestFailures:
    """A failing block fails the whole image."""

    def test_failed_block_raises(self, photo, monkeypatch):
        def flaky(source, kernel, start_row, end_row, preserve_alpha=False):
            if start_row > 0:
                raise MemoryError("out of memory")
            return convolve_rows(source, kernel, start_row, end_row, preserve_alpha)

        monkeypatch.setattr(conv.threaded, "convolve_rows", flaky)
        with pytest.raises(ProcessingFailed) as excinfo:
            Threaded(blur_kernel(3)).run(photo, num_threads=4)

        assert excinfo.value.rows == (10, 19)
        assert "MemoryError" in excinfo.value.reason
        assert isinstance(excinfo.value.__cause__, MemoryError)

    def test_failure_with_shared_executor(self, photo, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(conv.threaded, "convolve_rows", broken)
        with ThreadPoolExecutor(max_workers=2) as executor:
            with pytest.raises(ProcessingFailed, match="boom"):
                Threaded(blur_kernel(3)).run(photo, num_threads=2, executor=executor)
