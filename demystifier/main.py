"""
Main Orchestration Module

Command-line entry point: fetch a page, then analyze either its own policy
text or every legal document it links to.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from demystifier.config import settings
from demystifier.database import AnalysisStore
from demystifier.exceptions import DemystifierError
from demystifier.llm_client import build_model_client
from demystifier.page import SoupPageAccessor
from demystifier.pipeline import AnalysisPipeline, user_message
from demystifier.scoring import present
from demystifier.scraper import PageFetcher
from demystifier.utils import normalize_url, save_json, setup_logging

logger = logging.getLogger(__name__)


async def run(url: str, follow_links: bool, user_id: Optional[str], store: Optional[AnalysisStore]) -> List[Dict[str, Any]]:
    """Run one analysis request and return presentable results."""
    with PageFetcher() as fetcher:
        pipeline = AnalysisPipeline(fetcher, build_model_client(), store=store)

        fetched = await asyncio.to_thread(fetcher.fetch, url)
        page = SoupPageAccessor(fetched.html, fetched.url)

        if not follow_links:
            result = await pipeline.analyze_current_page(page, user_id)
            return [present(result, page.url)]

        outcomes = await pipeline.analyze_linked_pages(page, user_id)
        results = []
        for outcome in outcomes:
            if outcome.ok:
                entry = present(outcome.result, outcome.link.url)
            else:
                entry = {"url": outcome.link.url, "error": outcome.error}
            entry["link_text"] = outcome.link.anchor_text
            results.append(entry)
        return results


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Legal document discovery and risk analysis')
    parser.add_argument('--url', required=True, help='Page to analyze')
    parser.add_argument('--follow-links', action='store_true',
                        help='Analyze the legal documents linked from the page instead of the page itself')
    parser.add_argument('--user', default=None, help='User id the results are stored under')
    parser.add_argument('--no-store', action='store_true', help='Do not persist results')
    parser.add_argument('--output', default=None, help='Write results to this JSON file')
    parser.add_argument('--log-level', default=settings.log_level,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging level')

    args = parser.parse_args()

    setup_logging(level=getattr(logging, args.log_level.upper(), logging.INFO))

    logger.info("Starting analysis")
    logger.info(f"URL: {args.url}")
    logger.info(f"Follow links: {'Enabled' if args.follow_links else 'Disabled'}")
    logger.info(f"LLM provider: {settings.llm_provider}")

    store = None
    if not args.no_store and args.user:
        store = AnalysisStore()
        store.init_db()

    try:
        results = asyncio.run(run(normalize_url(args.url), args.follow_links, args.user, store))
        print(json.dumps(results, indent=2, ensure_ascii=False))
        if args.output:
            save_json(results, Path(args.output))
        logger.info("Analysis completed successfully")

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        sys.exit(130)  # Standard exit code for SIGINT

    except DemystifierError as e:
        logger.error(f"Analysis failed: {type(e).__name__}: {e}")
        print(f"Error: {user_message(e)}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        logger.critical(f"Analysis failed: {e}", exc_info=True)
        print("Error: Failed to analyze text.", file=sys.stderr)
        sys.exit(1)

    finally:
        if store is not None:
            store.close()


if __name__ == '__main__':
    main()
