"""
Batch intake CLI for extracted drug test reports.

Matches each extracted report to a pending test and, when a medications
file is supplied, classifies the detected substances. Generates:
- intake_results.xlsx: every report with match score and verdict
- review_queue.xlsx: reports needing a human decision

Usage:
    python scripts/match_batch.py --reports extracted.csv --candidates pending_tests.csv --output reports/intake_results.xlsx
    python scripts/match_batch.py --reports extracted.xlsx --candidates pending.csv --medications meds.json --screen --review-queue reports/review_queue.xlsx
"""

import argparse
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from drugtest_intake.batch import (
    candidates_from_frame,
    generate_summary_report,
    load_medications,
    load_table,
    process_reports,
    write_excel_output,
)
from drugtest_intake.classification.result_classifier import ResultClassifier
from drugtest_intake.matching.match_ranker import MatchRanker
from drugtest_intake.utils.config_manager import load_engine_config


def setup_logging(verbose: bool = False):
    """Configure loguru logger for the batch run."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level="DEBUG" if verbose else "INFO"
    )
    logger.add(
        "logs/match_batch_{time}.log",
        rotation="10 MB",
        retention="30 days",
        level="DEBUG"
    )


def main():
    """Main entry point for batch intake CLI."""
    parser = argparse.ArgumentParser(
        description="Batch drug test report matching and classification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument('--reports', '-i', required=True, help='Extracted reports file (Excel or CSV)')
    parser.add_argument('--candidates', '-c', required=True, help='Pending tests / clients file (Excel or CSV)')
    parser.add_argument('--output', '-o', required=True, help='Output Excel file for all results')
    parser.add_argument('--medications', '-m', help='JSON file of medications keyed by candidate id')
    parser.add_argument('--review-queue', '-r', help='Output Excel file for flagged reports only')
    parser.add_argument('--screen', action='store_true',
                        help='Screen workflow: skip tests already screened or complete')
    parser.add_argument('--config', type=Path, help='Engine config YAML (default: config/engine_config.yaml)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    args = parser.parse_args()
    setup_logging(args.verbose)

    config = load_engine_config(args.config)

    try:
        ranker = MatchRanker(config=config)
        classifier = ResultClassifier(config=config)
        reports = load_table(args.reports)
        candidates = candidates_from_frame(load_table(args.candidates))
        medications = load_medications(args.medications) if args.medications else None
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Matching {len(reports)} reports against {len(candidates)} candidates")

    try:
        results = process_reports(
            reports,
            candidates,
            ranker,
            classifier,
            medications=medications,
            is_screen_workflow=args.screen,
            show_progress=True,
        )
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    write_excel_output(results, args.output)
    logger.info(f"Results written to {args.output}")

    if args.review_queue:
        flagged = [r for r in results if r['review_flag']]
        write_excel_output(flagged, args.review_queue, sheet_name="Review Queue")
        logger.info(f"Review queue ({len(flagged)} reports) written to {args.review_queue}")

    print(generate_summary_report(results))


if __name__ == '__main__':
    main()
