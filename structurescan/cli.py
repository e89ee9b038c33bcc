"""
Command line entry point: renders an assessment JSON file to a PDF report.

Usage:
    structurescan-report assessment.json [--output report.pdf] [--no-page-numbers]
"""

import argparse
import json
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from structurescan.errors import ReportError
from structurescan.reporting.pdf_generator import generate_report, report_filename
from structurescan.schemas.models import AssessmentReport
from structurescan.utils.config import config, get_log_file
from structurescan.utils.logger import print_error, print_summary_panel, setup_logger

logger = setup_logger(__name__, level=config.log_level, log_file=get_log_file(), component="CLI")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a StructureScan assessment as a PDF report")
    parser.add_argument("input", type=Path, help="Assessment JSON file")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output PDF path (default: REPORT_DIR/Assessment_<name>_<timestamp>.pdf)",
    )
    parser.add_argument(
        "--no-page-numbers",
        action="store_true",
        help="Leave out the 'Page k of n' footer",
    )
    return parser.parse_args(argv)


def load_assessment(path: Path) -> AssessmentReport:
    return AssessmentReport.model_validate(json.loads(path.read_text(encoding="utf-8")))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if not args.input.exists():
        print_error("Input Error", f"Input file not found: {args.input}")
        return 1
    try:
        report = load_assessment(args.input)
    except json.JSONDecodeError as exc:
        print_error("Input Error", f"Input file contains invalid JSON: {exc}")
        return 1
    except ValidationError as exc:
        print_error("Input Error", "Assessment data is invalid", details=str(exc))
        return 1

    out_pdf = args.output or config.get_report_dir() / report_filename(report)
    try:
        data = generate_report(report, page_numbers=not args.no_page_numbers)
        out_pdf.parent.mkdir(parents=True, exist_ok=True)
        out_pdf.write_bytes(data)
    except ReportError as exc:
        print_error("Generation Error", str(exc))
        return 1
    except OSError as exc:
        print_error("Output Error", f"Could not write {out_pdf}: {exc}")
        return 1

    logger.info(f"Wrote report: {out_pdf}")
    print_summary_panel(
        "Report Generated",
        {
            "Assessment": report.assessment_name,
            "Risk": report.overall_risk,
            "Images": len(report.present_images),
            "Size": f"{len(data) / 1024:.1f} KB",
            "Output": out_pdf,
        },
        style="green",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
