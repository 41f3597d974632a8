"""Abstract base classes for convolution operations."""

from abc import ABC, abstractmethod

import numpy as np

from conv.kernel import Kernel


class Conv2D(ABC):
    """Abstract base class for 2D convolution operations."""

    kernel: Kernel
    preserve_alpha: bool

    def __init__(self, kernel: Kernel | list[list], preserve_alpha: bool = False) -> None:
        """Initialize Conv2D class.

        Args:
            kernel (Kernel | list[list]): Kernel that will be used. A plain
                matrix is taken as already normalized (divisor 1).
            preserve_alpha (bool): Copy the alpha channel of 2 and 4 channel
                images through instead of convolving it.
        """
        self.kernel = kernel if isinstance(kernel, Kernel) else Kernel(np.array(kernel))
        self.preserve_alpha = preserve_alpha

    @abstractmethod
    def run(self, image) -> np.ndarray:
        """Run convolution operation on the given image.

        Args:
            image (np.ndarray | Image): Image to apply convolution on.

        Returns:
            np.ndarray: Convolved image with the same shape and dtype.
        """
        pass
