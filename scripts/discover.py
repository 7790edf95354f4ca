"""
Run one hint-aware discovery search from the command line.

This script:
1) Loads the local catalog (data/movies.jsonl by default)
2) Runs local search, AI discovery and the fallback chain
3) Logs every progress snapshot as it arrives
4) Prints the final merged results

Usage:
    python -m scripts.discover "tom hanks 90s drama"
    python -m scripts.discover "oldboy" --no-ai --catalog data/movies.jsonl

Newly ingested movies are written back to the catalog, so the next search finds them locally.
"""

import argparse  # command-line flags
import asyncio  # event loop for the coordinator
import time  # measure step timings

from loguru import logger  # console logging

from hintsearch import config
from hintsearch.coordinator import SearchCoordinator, default_collaborators


def parse_args(argv=None):
	parser = argparse.ArgumentParser(description="Hint-aware movie discovery search")
	parser.add_argument("query", help="natural language movie query")
	parser.add_argument("--no-ai", action="store_true", help="local catalog only")
	parser.add_argument("--catalog", default=None, help=f"catalog JSONL path (default: {config.CATALOG_PATH})")
	parser.add_argument("--log-level", default=config.LOG_LEVEL, help="loguru level")
	return parser.parse_args(argv)


async def run(query: str, enable_ai: bool, catalog_path=None):
	coordinator = SearchCoordinator(**default_collaborators(catalog_path))
	snapshots = []

	def on_progress(results):
		snapshots.append(results)
		head = ", ".join(r.title for r in results[:3])
		logger.info(f"[Progress {len(snapshots)}] {len(results)} results{': ' + head if head else ''}")

	response = await coordinator.search(query, enable_ai=enable_ai, on_progress=on_progress)
	await coordinator.drain()
	return response


def main(argv=None):
	args = parse_args(argv)
	config.configure_logging(args.log_level)

	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info(f"Discover: {args.query}")
	logger.info("=" * 60)

	t0 = time.time()  # start timer
	response = asyncio.run(run(args.query, not args.no_ai, args.catalog))
	logger.info(f"[OK] Search finished in {time.time() - t0:.2f}s | hints={response.hints}")

	for rank, r in enumerate(response.all_results, 1):
		score = f"{r.ai_score:.1f}" if r.ai_score is not None else "-"
		flag = "" if r.verified else " (unverified)"
		print(f"{rank:>2}. {r.title} ({r.year or '?'}) [{r.source.value}] score={score} - {r.match_reason or ''}{flag}")

	# Footer
	logger.info(
		f"{len(response.local_results)} local, {len(response.ai_results)} discovered, "
		f"{response.newly_ingested_count} newly ingested"
		+ (f", AI cost {response.ai_cost_estimate:.3f}c" if response.ai_cost_estimate is not None else "")
	)
	logger.info("=" * 60)


if __name__ == '__main__':
	main()  # invoke search
