"""Module for building convolution kernels."""

from dataclasses import dataclass
from math import comb

import numpy as np

from conv.errors import InvalidKernelSize

PROFILES = ("box", "gaussian")


@dataclass(frozen=True)
class Blur:
    """Blur effect: averages the neighbourhood of each pixel."""

    size: int = 3
    profile: str = "box"


@dataclass(frozen=True)
class Sharpen:
    """Sharpen effect: boosts each pixel against its neighbours."""

    size: int = 3


Effect = Blur | Sharpen


@dataclass(frozen=True, eq=False)
class Kernel:
    """Square matrix of weights plus the divisor applied after accumulation.

    Weights are stored read-only, so a built kernel can be shared between
    threads.
    """

    weights: np.ndarray
    divisor: float = 1.0

    def __post_init__(self) -> None:
        weights = np.array(self.weights, dtype=np.float64)
        if weights.ndim != 2 or weights.shape[0] != weights.shape[1]:
            raise ValueError(f"Kernel must be a square matrix, got shape {weights.shape}.")
        validate_size(weights.shape[0])
        if self.divisor == 0:
            raise ValueError("Kernel divisor must not be zero.")
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "divisor", float(self.divisor))

    @property
    def size(self) -> int:
        return self.weights.shape[0]

    @property
    def radius(self) -> int:
        return self.size // 2

    def scaled(self) -> np.ndarray:
        """Return the weights with the divisor already applied."""
        return self.weights / self.divisor


def validate_size(size) -> int:
    """Check that size is an odd integer of at least 3.

    Args:
        size: Candidate kernel size.

    Returns:
        int: The validated size.

    Raises:
        InvalidKernelSize: If size is not usable.
    """
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        raise InvalidKernelSize(size)
    if size < 3 or size % 2 == 0:
        raise InvalidKernelSize(size)
    return int(size)


def blur_kernel(size: int = 3, profile: str = "box") -> Kernel:
    """Build a blur kernel.

    The box profile gives every cell the same weight. The gaussian profile
    uses binomial coefficients, which approximate a Gaussian bell and give
    [[1, 2, 1], [2, 4, 2], [1, 2, 1]] for size 3.

    Args:
        size (int): Odd kernel size.
        profile (str): Either "box" or "gaussian".

    Returns:
        Kernel: Kernel whose scaled weights sum to 1.
    """
    size = validate_size(size)
    if profile == "box":
        weights = np.ones((size, size))
    elif profile == "gaussian":
        row = np.array([comb(size - 1, i) for i in range(size)], dtype=np.float64)
        weights = np.outer(row, row)
    else:
        raise ValueError(f"Unknown blur profile {profile!r}, expected one of {PROFILES}.")
    return Kernel(weights, divisor=weights.sum())


def sharpen_kernel(size: int = 3) -> Kernel:
    """Build a sharpen kernel.

    Every cell on the centre row and centre column except the centre itself
    weighs -1 and the centre balances them, so the weights sum to 1. Larger
    sizes pull in more distant neighbours and sharpen harder.

    Args:
        size (int): Odd kernel size.

    Returns:
        Kernel: Sharpen kernel with divisor 1.
    """
    size = validate_size(size)
    radius = size // 2
    weights = np.zeros((size, size))
    weights[radius, :] = -1.0
    weights[:, radius] = -1.0
    weights[radius, radius] = 1.0 + 4 * radius
    return Kernel(weights, divisor=1.0)


def build_kernel(effect: Effect) -> Kernel:
    """Resolve an effect into its kernel.

    Args:
        effect (Effect): Blur or Sharpen.

    Returns:
        Kernel: The kernel for the effect.
    """
    if isinstance(effect, Blur):
        return blur_kernel(effect.size, effect.profile)
    if isinstance(effect, Sharpen):
        return sharpen_kernel(effect.size)
    raise TypeError(f"Unsupported effect {effect!r}.")
