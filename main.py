"""CLI entrypoint for the legislative indicações dashboard pipeline."""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from csv_sink import write_proposals
from models import CATEGORIES
from pipeline import (
    SAPL_AUTHOR_ID,
    SAPL_YEAR,
    PipelineError,
    build_search_url,
    collect_raw_proposals,
    run_pipeline,
)
from report import render_dashboard, write_summary
from view_model import filter_by_category, summarize


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Scrape, classify and summarize SAPL indicações")
    parser.add_argument("--year", type=int, default=SAPL_YEAR, help="Legislative year to query")
    parser.add_argument("--author", default=SAPL_AUTHOR_ID, help="SAPL author id (autoria__autor)")
    parser.add_argument(
        "--category",
        choices=CATEGORIES,
        default=None,
        help="Only list proposals in this category (the summary still covers all of them)",
    )
    parser.add_argument("--csv", dest="csv_path", default=None, help="Export classified proposals to this CSV file")
    parser.add_argument("--summary-csv", dest="summary_path", default=None, help="Export the category summary to CSV")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and parse the listing only, without classifier calls",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """Run one pipeline cycle and print the dashboard. Returns the exit code."""
    page_urls = (
        build_search_url(page=1, year=args.year, author_id=args.author),
        build_search_url(page=2, year=args.year, author_id=args.author),
    )

    try:
        if args.dry_run:
            raw = collect_raw_proposals(page_urls=page_urls)
            for proposal in raw:
                logging.info("[dry-run] Would classify %s (%s)", proposal.id, proposal.protocol_date)
            logging.info("[dry-run] %s unique proposals extracted", len(raw))
            return 0
        proposals = run_pipeline(page_urls=page_urls)
    except PipelineError as exc:
        logging.error("Pipeline failed: %s", exc)
        print(f"Ocorreu um Erro: {exc}", file=sys.stderr)
        return 1

    summaries = summarize(proposals)
    visible = filter_by_category(proposals, args.category)
    print(render_dashboard(visible, summaries, selected_category=args.category))

    if args.csv_path:
        write_proposals(proposals, csv_path=args.csv_path)
    if args.summary_path:
        write_summary(summaries, path=args.summary_path)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute the pipeline."""
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    sys.exit(run(args))


if __name__ == "__main__":
    main()
