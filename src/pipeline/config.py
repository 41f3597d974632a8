"""Run configuration for the filter pipeline."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from conv.errors import ConvError, InvalidKernelSize
from conv.kernel import PROFILES, Blur, Effect, Sharpen, validate_size

EFFECTS = ("blur", "sharpen")


class ConfigError(ConvError):
    """Raised when the run configuration is unusable."""


@dataclass
class Config:
    """Configuration for a batch run."""

    input_dir: Path = field(default_factory=lambda: Path("images"))
    effect: str = "blur"
    size: int = 3
    profile: str = "box"
    workers: int | None = None  # None = CPU count
    preserve_alpha: bool = False
    extensions: tuple[str, ...] = (".jpg", ".jpeg")
    output_dir: Path | None = None

    @classmethod
    def from_args(cls, args) -> "Config":
        """Create Config from parsed command line arguments."""
        return cls(
            input_dir=Path(args.input_dir),
            effect=args.effect,
            size=args.size,
            profile=args.profile,
            workers=args.workers,
            preserve_alpha=args.preserve_alpha,
            extensions=tuple(args.ext) if args.ext else cls.extensions,
            output_dir=Path(args.output_dir) if args.output_dir else None,
        )

    @property
    def worker_count(self) -> int:
        return self.workers or os.cpu_count() or 1

    def validate(self) -> "Config":
        """Check every field, raising ConfigError on the first bad one."""
        if self.effect not in EFFECTS:
            raise ConfigError(f"Unknown effect {self.effect!r}, expected one of {EFFECTS}.")
        if self.profile not in PROFILES:
            raise ConfigError(f"Unknown blur profile {self.profile!r}, expected one of {PROFILES}.")
        try:
            validate_size(self.size)
        except InvalidKernelSize as exc:
            raise ConfigError(str(exc)) from exc
        if self.workers is not None and self.workers < 1:
            raise ConfigError(f"Worker count must be at least 1, got {self.workers}.")
        if not self.extensions:
            raise ConfigError("At least one image extension is required.")
        return self

    def to_effect(self) -> Effect:
        """Return the effect this configuration selects."""
        if self.effect == "sharpen":
            return Sharpen(self.size)
        return Blur(self.size, self.profile)
