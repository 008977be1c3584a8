"""Command line entry point: extract the images of a PDF into a directory"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from engine import EngineConfig, ExtractorOptions
from extractors.image_extractor import ImageExtractionError, PdfImageExtractor
from utils.log_config import configure_logging
from utils.validation import PdfValidationError

logger = logging.getLogger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-image-extract",
        description="Extract embedded images from a PDF as out1.png, out2.jpg, ..."
    )
    parser.add_argument("pdf_path", help="PDF file to extract images from")
    parser.add_argument("-o", "--output-directory", default="images",
                        help="Directory to write images to; existing .jpg/.png files are removed (default: images)")
    parser.add_argument("--legacy-png-extension", action="store_true",
                        help="Name every file out<N>.png, including JPEG data")
    parser.add_argument("--strict", action="store_true",
                        help="Stop at the first image that cannot be decoded")
    parser.add_argument("--max-file-size-mb", type=int, default=50,
                        help="Reject documents larger than this (default: 50)")
    parser.add_argument("--log-level", default=None,
                        help="Log level (default: $LOG_LEVEL or INFO)")
    return parser


def _summary_table(extractor: PdfImageExtractor) -> Table:
    table = Table(title="Extracted images")
    table.add_column("File")
    table.add_column("Name")
    table.add_column("Object")
    table.add_column("Dimensions", justify="right")
    table.add_column("Bytes", justify="right")
    table.add_column("Mode")

    for image in extractor.images:
        mode = image.color_type.name if image.color_type is not None else "JPEG"
        table.add_row(
            Path(image.path).name if image.path else "",
            image.name,
            str(image.reference),
            f"{image.width}x{image.height}",
            str(len(image.data)),
            mode
        )
    return table


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = Console()
    configure_logging(args.log_level, console=Console(stderr=True), show_path=False)

    options = ExtractorOptions(
        output_directory=args.output_directory,
        legacy_png_extension=args.legacy_png_extension,
        strict=args.strict,
    )
    config = EngineConfig(max_file_size_mb=args.max_file_size_mb)

    try:
        extractor = PdfImageExtractor(args.pdf_path, options, config)
        extractor.extract_images()
    except (FileNotFoundError, PdfValidationError, ImageExtractionError) as e:
        logger.error(str(e))
        return 1

    if extractor.images:
        console.print(_summary_table(extractor))
    console.print(
        f"[bold green]{len(extractor.images)} image(s) written to {args.output_directory}[/bold green]"
    )
    for failure in extractor.failures:
        console.print(f"[yellow]Skipped {failure.name} ({failure.reference}): {failure.error}[/yellow]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
