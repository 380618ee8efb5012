import argparse
import asyncio
import json
import sys

from krops.cache import ReportCache
from krops.capture import CapturedImage
from krops.config import get_settings
from krops.errors import ConfigurationError, DiagnosisFailedError, InvalidImageError, PreconditionError
from krops.export import export_report
from krops.factory import build_pipeline
from krops.languages import DEFAULT_LANGUAGE, Language
from krops.log import configure_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PRECONDITION = 2


async def run_pipeline(args: argparse.Namespace) -> int:
    try:
        settings = get_settings()
        configure_logging(settings.log_level)
        cache = ReportCache(settings.cache_path, capacity=settings.cache_size)
        image = CapturedImage.from_path(args.image)
        pipeline = build_pipeline(settings, cache)
        result = await pipeline.run(image, args.description, args.lang)
    except (PreconditionError, InvalidImageError, ConfigurationError, OSError) as e:
        print(f"Cannot start scan: {e}", file=sys.stderr)
        return EXIT_PRECONDITION
    except DiagnosisFailedError as e:
        print(str(e), file=sys.stderr)
        return EXIT_FAILED

    print(json.dumps(result.model_dump(by_alias=True, exclude={"medicine_image"}), indent=2, ensure_ascii=False))
    if result.medicine_image is None:
        print("Medicine visual: not generated", file=sys.stderr)

    if args.pdf:
        report = export_report(result, font_path=settings.pdf_font)
        with open(args.pdf, "wb") as f:
            f.write(report.content)
        print(f"Saved {report.filename} to {args.pdf}", file=sys.stderr)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Diagnose a crop photo with KROPS AI.")
    parser.add_argument("image", help="Path to the crop photo")
    parser.add_argument("--description", default="", help="Symptoms in the farmer's words")
    parser.add_argument("--lang", type=Language.parse, default=DEFAULT_LANGUAGE, help="Report language, e.g. Telugu")
    parser.add_argument("--pdf", default=None, help="Also write the field audit PDF to this path")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run_pipeline(args))


if __name__ == "__main__":
    sys.exit(main())
