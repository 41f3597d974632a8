"""Command line interface for the filter pipeline."""

import argparse
import logging
import sys

from conv.kernel import PROFILES
from pipeline.config import EFFECTS, Config, ConfigError
from pipeline.driver import Driver

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Blur or sharpen every image in a folder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Blur images/*.jpg with a 3x3 box kernel
  %(prog)s photos --size 7              # Stronger blur
  %(prog)s --effect sharpen             # Sharpen
  %(prog)s --profile gaussian --size 5  # Gaussian-like blur
  %(prog)s --workers 4 --output-dir out
        """,
    )
    parser.add_argument("input_dir", nargs="?", default="images", help="Folder to scan")
    parser.add_argument("--effect", default="blur", help=f"One of {', '.join(EFFECTS)}")
    parser.add_argument("--size", type=int, default=3, help="Odd kernel size (3, 5, 7, ...)")
    parser.add_argument(
        "--profile", default="box", help=f"Blur weight profile, one of {', '.join(PROFILES)}"
    )
    parser.add_argument("--workers", type=int, help="Worker threads (default: CPU count)")
    parser.add_argument(
        "--preserve-alpha",
        action="store_true",
        help="Copy the alpha channel through instead of filtering it",
    )
    parser.add_argument("--output-dir", help="Write results here instead of next to the inputs")
    parser.add_argument(
        "--ext", nargs="+", metavar="SUFFIX", help="Image suffixes to pick up (default: .jpg .jpeg)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline and return the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)-18s - %(levelname)-8s - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        driver = Driver(Config.from_args(args))
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    return driver.run().exit_code


if __name__ == "__main__":
    sys.exit(main())
