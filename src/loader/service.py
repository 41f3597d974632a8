"""Module for loading and saving images."""

import logging
import re
from pathlib import Path

import numpy as np

from PIL import Image
from conv.errors import ConvError
from conv.kernel import Blur, Effect, Sharpen

OUTPUT_NAME = re.compile(r"_(blurred_\d+|sharpened)$")
HIGH_BIT_DEPTH_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")

logger = logging.getLogger(__name__)


class ImageIOError(ConvError):
    """Base class for errors tied to one image file."""

    def __init__(self, path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class DecodeError(ImageIOError):
    """Raised when an image file cannot be read."""


class EncodeError(ImageIOError):
    """Raised when an image cannot be written."""


class Loader:
    """Class for finding, loading and saving images."""

    supported_modes = ("L", "LA", "RGB", "RGBA")
    alpha_free_formats = (".jpg", ".jpeg")

    @classmethod
    def discover(cls, directory, extensions=(".jpg", ".jpeg")) -> list[Path]:
        """List the images of a directory.

        Files written by this tool are skipped, so running twice over the same
        folder does not filter its own results.

        Args:
            directory (str | Path): Folder to scan, not recursive.
            extensions (tuple): Accepted suffixes, compared case-insensitively.

        Returns:
            list[Path]: Matching files, sorted by name.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Input directory '{directory}' does not exist.")

        accepted = {ext.lower() for ext in extensions}
        found = []
        for path in directory.iterdir():
            if not path.is_file() or path.suffix.lower() not in accepted:
                continue
            if OUTPUT_NAME.search(path.stem):
                logger.debug("Skipping '%s': named like a filtered output.", path)
                continue
            found.append(path)
        return sorted(found)

    @classmethod
    def load(cls, image_path) -> np.ndarray:
        """Load an image from the given path.

        Args:
            image_path (str | Path): Path to the image file.

        Returns:
            np.ndarray: Array of shape (H, W) for grayscale or (H, W, C).

        Raises:
            DecodeError: If the file is missing or not a readable image.
        """
        try:
            with Image.open(image_path) as image:
                image.load()
                return np.array(cls.convert_to_supported_mode(image))
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(image_path, str(exc) or type(exc).__name__) from exc

    @classmethod
    def convert_to_supported_mode(cls, image: Image.Image) -> Image.Image:
        """Convert the image to L, LA, RGB or RGBA if necessary.

        16-bit grayscale is scaled down to 8 bits by dropping the low byte.

        Args:
            image (Image.Image): The decoded image.
        """
        if image.mode in cls.supported_modes:
            return image
        if image.mode in HIGH_BIT_DEPTH_MODES:
            samples = np.clip(np.array(image, dtype=np.int64), 0, 65535) >> 8
            return Image.fromarray(samples.astype(np.uint8))
        if image.has_transparency_data:
            return image.convert("RGBA")
        return image.convert("RGB")

    @classmethod
    def save(cls, buffer: np.ndarray, image_path) -> Path:
        """Save a buffer as an image.

        Float and wide integer buffers are scaled to 8 bits. The alpha channel is
        dropped for formats that cannot hold one. On failure nothing is left
        on disk.

        Args:
            buffer (np.ndarray): Image buffer.
            image_path (str | Path): Destination; the suffix picks the format.

        Returns:
            Path: The written path.

        Raises:
            EncodeError: If the image cannot be encoded or written.
        """
        image_path = Path(image_path)
        try:
            image = Image.fromarray(cls.to_uint8(buffer))
            if image_path.suffix.lower() in cls.alpha_free_formats and image.mode in ("LA", "RGBA"):
                image = image.convert(image.mode[:-1])
            image.save(image_path)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            image_path.unlink(missing_ok=True)
            raise EncodeError(image_path, str(exc) or type(exc).__name__) from exc
        return image_path

    @staticmethod
    def to_uint8(buffer: np.ndarray) -> np.ndarray:
        """Bring a buffer to 8-bit samples, squeezing single channel images.

        Floats are read as [0, 1] and other integer types as their full range,
        both scaled onto [0, 255].
        """
        if np.issubdtype(buffer.dtype, np.floating):
            buffer = np.rint(np.clip(buffer, 0.0, 1.0) * 255.0)
        elif buffer.dtype != np.uint8:
            info = np.iinfo(buffer.dtype)
            buffer = np.rint((buffer.astype(np.float64) - info.min) * 255.0 / (info.max - info.min))
        buffer = buffer.astype(np.uint8)
        if buffer.ndim == 3 and buffer.shape[2] == 1:
            buffer = buffer[..., 0]
        return buffer

    @staticmethod
    def output_path(source, effect: Effect, output_dir=None) -> Path:
        """Name the file a filtered image is written to.

        Args:
            source (str | Path): The input image.
            effect (Effect): Effect that was applied.
            output_dir (str | Path | None): Target folder, defaults to the
                folder of source.

        Returns:
            Path: <stem>_blurred_<size><suffix> or <stem>_sharpened<suffix>.
        """
        source = Path(source)
        if isinstance(effect, Blur):
            name = f"{source.stem}_blurred_{effect.size}{source.suffix}"
        elif isinstance(effect, Sharpen):
            name = f"{source.stem}_sharpened{source.suffix}"
        else:
            raise TypeError(f"Unsupported effect {effect!r}.")
        return Path(output_dir or source.parent) / name
