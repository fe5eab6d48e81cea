import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from models.separator_style import SeparatorStyle, DEFAULT_SEPARATOR_COLOR
from models.errors import StitchError
from pipeline.stitch_images import stitch_images, MAX_WORKERS
from services.image_service import ImageService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="screenshot-stitch",
        description="Stitch a folder of numbered screenshots (1.png, 2.png, ...) into one PNG.",
    )
    parser.add_argument("folder", help="directory holding the screenshots")
    parser.add_argument("-o", "--output", default="stitched-image.png", help="output PNG path")
    parser.add_argument("--header-height", type=int, default=0,
                        help="rows of repeating header to crop from every image but the first")
    parser.add_argument("--separator", action="store_true",
                        help="draw a band where consecutive images do not overlap")
    parser.add_argument("--separator-height", type=int,
                        default=int(os.getenv("SEPARATOR_HEIGHT", "3")))
    parser.add_argument("--separator-color",
                        default=os.getenv("SEPARATOR_COLOR", DEFAULT_SEPARATOR_COLOR))
    parser.add_argument("--workers", type=int, default=MAX_WORKERS,
                        help="threads used for overlap detection")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.header_height < 0:
        logger.error("--header-height must be non-negative")
        return 2

    image_service = ImageService()
    try:
        separator = (SeparatorStyle.from_hex(args.separator_height, args.separator_color)
                     if args.separator else SeparatorStyle.none())
        images = list(image_service.stream_folder(args.folder))
        if not images:
            logger.error(f"No images found in {args.folder}")
            return 1

        logger.info(f"Stitching {len(images)} images from {args.folder}")
        canvas = stitch_images(
            images,
            crop_height=args.header_height,
            separator=separator,
            max_workers=args.workers,
        )
        out = image_service.save(canvas, args.output)
    except (StitchError, ValueError, OSError) as e:
        logger.error(f"Stitch failed: {e}")
        return 1

    logger.info(f"Wrote {canvas.width}x{canvas.height} image to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
