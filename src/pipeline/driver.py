"""Batch driver: discover, decode, convolve, encode."""

import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from conv.errors import ConvError
from conv.kernel import build_kernel
from conv.threaded import Threaded
from loader.service import Loader
from pipeline.config import Config

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    """Outcome of processing one file."""

    source: Path
    output: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    """Outcome of a whole run."""

    results: list[FileResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[FileResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[FileResult]:
        return [r for r in self.results if not r.ok]

    @property
    def exit_code(self) -> int:
        """0 when at least one file was written, 1 otherwise."""
        return 0 if self.succeeded else 1


class Driver:
    """Runs one effect over every image of a directory.

    The kernel is built once and a single thread pool serves every image of
    the run. Errors tied to one file are logged and recorded, and the batch
    carries on with the next file.
    """

    def __init__(self, config: Config) -> None:
        self.config = config.validate()
        self.effect = config.to_effect()
        self.kernel = build_kernel(self.effect)

    def run(self) -> BatchReport:
        """Process every image found in the input directory."""
        report = BatchReport()
        try:
            files = Loader.discover(self.config.input_dir, self.config.extensions)
        except FileNotFoundError as exc:
            logger.error("%s", exc)
            return report

        if not files:
            logger.error(
                "No %s files found in '%s'.",
                "/".join(self.config.extensions),
                self.config.input_dir,
            )
            return report

        if self.config.output_dir is not None:
            try:
                self.config.output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("Cannot create output directory '%s': %s", self.config.output_dir, exc)
                return report

        workers = self.config.worker_count
        tiler = Threaded(self.kernel, preserve_alpha=self.config.preserve_alpha)
        logger.info("Applying %s to %d file(s) with %d worker(s).", self.effect, len(files), workers)

        start_time = time.time()
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for path in files:
                report.results.append(self.process_file(path, tiler, executor))
        end_time = time.time()

        logger.info(
            "Done in %.3f seconds: %d succeeded, %d failed.",
            end_time - start_time,
            len(report.succeeded),
            len(report.failed),
        )
        return report

    def process_file(self, path: Path, tiler: Threaded, executor: Executor) -> FileResult:
        """Decode, convolve and encode a single file.

        Args:
            path (Path): Input image.
            tiler (Threaded): Convolution to run.
            executor (Executor): Pool shared by the whole run.

        Returns:
            FileResult: Where the output went, or why it failed.
        """
        try:
            source = Loader.load(path)
            output = tiler.run(source, num_threads=self.config.worker_count, executor=executor)
            target = Loader.save(
                output, Loader.output_path(path, self.effect, self.config.output_dir)
            )
        except ConvError as exc:
            logger.error("Failed to process '%s': %s", path, exc)
            return FileResult(path, error=str(exc))

        logger.info("Saved '%s'.", target)
        return FileResult(path, output=target)
