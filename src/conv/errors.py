"""Exceptions raised by convolution operations."""


class ConvError(Exception):
    """Base class for every error raised by this project."""


class InvalidKernelSize(ConvError, ValueError):
    """Raised when a kernel size is not an odd integer of at least 3."""

    def __init__(self, size) -> None:
        self.size = size
        super().__init__(f"Kernel size must be an odd integer >= 3, got {size!r}.")


class ProcessingFailed(ConvError):
    """Raised when a work unit of a parallel convolution fails."""

    def __init__(self, rows: tuple[int, int], reason: str) -> None:
        self.rows = rows
        self.reason = reason
        super().__init__(f"Convolution of rows [{rows[0]}, {rows[1]}) failed: {reason}")
