"""Module for convolution operations."""

import logging
import os
import time

import numpy as np

from concurrent.futures import Executor, ThreadPoolExecutor, wait
from conv.abstract import Conv2D
from conv.errors import ProcessingFailed
from conv.kernel import Kernel
from conv.standard import as_buffer, convolve_rows

logger = logging.getLogger(__name__)


def partition_rows(height: int, worker_count: int) -> list[tuple[int, int]]:
    """Split [0, height) into contiguous, balanced row ranges.

    At most worker_count ranges are made, and never more than there are rows.
    The first height % n ranges get one extra row.

    Args:
        height (int): Number of rows.
        worker_count (int): Number of workers available.

    Returns:
        list[tuple[int, int]]: Half open (start, end) ranges in row order.
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}.")
    count = min(height, worker_count)
    if count == 0:
        return []

    base, extra = divmod(height, count)
    blocks = []
    start = 0
    for index in range(count):
        end = start + base + (1 if index < extra else 0)
        blocks.append((start, end))
        start = end
    return blocks


class Threaded(Conv2D):
    """Class for 2D convolution operations split across threads by rows."""

    kernel: Kernel

    def run(
        self,
        image,
        num_threads: int | None = None,
        executor: Executor | None = None,
    ) -> np.ndarray:
        """Run convolution operation on the given image.

        Args:
            image (np.ndarray | Image): Image to apply convolution on.
            num_threads (int | None): Number of row blocks. Defaults to the
                CPU count.
            executor (Executor | None): Pool to submit blocks to. When None,
                a thread pool is created for this call only.

        Returns:
            np.ndarray: Convolved image.

        Raises:
            ProcessingFailed: If any block fails. No output is returned.
        """
        source = as_buffer(image)
        if num_threads is None:
            num_threads = os.cpu_count() or 1
        blocks = partition_rows(source.shape[0], num_threads)
        output = np.empty_like(source)

        def process_block(start_row: int, end_row: int) -> None:
            """Process image block.

            Args:
                start_row (int): The first row of the block.
                end_row (int): One past the last row of the block.
            """
            output[start_row:end_row] = convolve_rows(
                source, self.kernel, start_row, end_row, self.preserve_alpha
            )

        start_time = time.time()

        if executor is None:
            with ThreadPoolExecutor(max_workers=num_threads) as own_executor:
                self._dispatch(own_executor, process_block, blocks)
        else:
            self._dispatch(executor, process_block, blocks)

        end_time = time.time()

        logger.debug(
            "Threaded convolution of %d blocks took %.6f seconds.",
            len(blocks),
            end_time - start_time,
        )
        return output

    @staticmethod
    def _dispatch(executor: Executor, process_block, blocks: list[tuple[int, int]]) -> None:
        """Submit every block and wait for all of them to finish."""
        futures = [executor.submit(process_block, start, end) for start, end in blocks]
        wait(futures)

        for block, future in zip(blocks, futures):
            error = future.exception()
            if error is not None:
                raise ProcessingFailed(block, f"{type(error).__name__}: {error}") from error
