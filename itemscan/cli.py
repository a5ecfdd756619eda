#!/usr/bin/env python3
"""
itemscan CLI - search items from the terminal.

Usage:
    itemscan search-image inventory.png stash.png --min-confidence 0.5
    itemscan search-image bitcoin.png --single --json
    itemscan search-text "labs keycard"
    itemscan preload
    itemscan stats
    itemscan clear
"""

import argparse
import json
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from itemscan.config import Config, get_config


def setup_logging(config: Config, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def get_search_cache(config: Config):
    """Get a search cache backed by the on-disk cache directory."""
    from itemscan.cache.search_cache import SearchCache
    from itemscan.cache.storage import FileStore

    store = FileStore(config.cache_dir) if config.persist_cache else None
    return SearchCache(config=config, store=store)


def get_catalog(config: Config):
    from itemscan.core.catalog import load_catalog
    return load_catalog(config.catalog_path)


def get_orchestrator(config: Config, cache, catalog):
    """Get the orchestrator with Gemini as primary and the catalog as fallback."""
    from itemscan.recognizers.catalog_recognizer import CatalogRecognizer
    from itemscan.recognizers.gemini_recognizer import GeminiRecognizer
    from itemscan.recognizers.orchestrator import RecognitionOrchestrator

    return RecognitionOrchestrator(
        cache=cache,
        primary=GeminiRecognizer(catalog, config=config),
        fallback=CatalogRecognizer(catalog),
        config=config,
    )


def cmd_search_image(args, config: Config) -> int:
    """Identify items in one or more screenshots."""
    from itemscan.core.exceptions import HashingError, InvalidInputError
    from itemscan.core.types import SearchOptions

    options = SearchOptions(
        max_results=args.max_results or config.default_max_results,
        min_confidence=(
            args.min_confidence if args.min_confidence is not None
            else config.default_min_confidence
        ),
        include_variants=not args.no_variants,
        detect_multiple_items=not args.single,
    )

    cache = get_search_cache(config)
    try:
        orchestrator = get_orchestrator(config, cache, get_catalog(config))
        try:
            results = orchestrator.search_by_images(args.images, options)
        except (InvalidInputError, HashingError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        elapsed = orchestrator.last_search_ms or 0.0
        cache_hit = orchestrator.stats["cache_hits"] > 0
    finally:
        cache.close()

    if args.json:
        print(json.dumps({
            "results": [r.to_dict() for r in results],
            "count": len(results),
            "time_ms": elapsed,
            "cached": cache_hit,
        }, indent=2))
        return 0

    if not results:
        print("No items recognized.")
        return 0

    source = "cache" if cache_hit else "recognizer"
    print(f"\nFound {len(results)} item(s) in {elapsed:.0f}ms (from {source}):")
    for i, result in enumerate(results, 1):
        item = result.item
        price = f"{item.base_price:,}" if item.base_price else "?"
        print(f"  {i}. {item.name} [{item.id}] {result.confidence:.0%}  price={price}  ({result.source.value})")

    if args.output and len(args.images) == 1:
        from PIL import Image
        from itemscan.utils.image import draw_results

        with Image.open(args.images[0]) as img:
            draw_results(img.convert("RGB"), results, args.output)
        print(f"Annotated image saved to {args.output}")

    return 0


def cmd_search_text(args, config: Config) -> int:
    """Look up items by name."""
    cache = get_search_cache(config)
    try:
        items = cache.get_cached_text_search(args.query)
        cached = items is not None
        if not cached:
            items = get_catalog(config).search(args.query)
            cache.set_cached_text_search(args.query, items)
    finally:
        cache.close()

    items = items[:args.limit]
    if args.json:
        print(json.dumps({
            "query": args.query,
            "items": [i.to_dict() for i in items],
            "cached": cached,
        }, indent=2))
        return 0

    if not items:
        print(f"No items match '{args.query}'.")
        return 0

    print(f"\n{len(items)} match(es) for '{args.query}'{' (cached)' if cached else ''}:")
    for item in items:
        variant = f"  variant of {item.variant_of}" if item.variant_of else ""
        print(f"  - {item.name} [{item.id}] {item.category}{variant}")
    return 0


def cmd_preload(args, config: Config) -> int:
    """Warm the text cache with common queries."""
    cache = get_search_cache(config)
    catalog = get_catalog(config)
    try:
        loaded = cache.preload_popular_searches(catalog.search, args.queries or None)
    finally:
        cache.close()
    print(f"Preloaded {loaded} search(es).")
    return 0


def cmd_stats(args, config: Config) -> int:
    """Show cache statistics."""
    cache = get_search_cache(config)
    try:
        stats = cache.get_cache_stats()
    finally:
        cache.close()

    if args.json:
        print(json.dumps(stats, indent=2))
        return 0

    print("\nCache statistics:")
    print(f"  Text entries:  {stats['text_entries']}")
    print(f"  Image entries: {stats['image_entries']}")
    print(f"  Size:          {stats['total_size_bytes'] / 1024:.1f} KB")
    print(f"  Hits/misses:   {stats['hits']}/{stats['misses']}")
    print(f"  Hit rate:      {stats['hit_rate']:.1%}")
    return 0


def cmd_clear(args, config: Config) -> int:
    """Empty both caches."""
    cache = get_search_cache(config)
    try:
        cache.clear_cache()
    finally:
        cache.close()
    print("Cache cleared.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="itemscan - cached item search by text and screenshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # search-image command
    image_parser = subparsers.add_parser("search-image", help="Identify items in screenshots")
    image_parser.add_argument("images", nargs="+", help="Image file paths")
    image_parser.add_argument("--min-confidence", "-c", type=float, help="Minimum confidence (0-1)")
    image_parser.add_argument("--max-results", "-n", type=int, help="Maximum results per image")
    image_parser.add_argument("--single", "-s", action="store_true", help="Return only the best match")
    image_parser.add_argument("--no-variants", action="store_true", help="Exclude item variants")
    image_parser.add_argument("--output", "-o", help="Save annotated image (single image only)")
    image_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # search-text command
    text_parser = subparsers.add_parser("search-text", help="Look up items by name")
    text_parser.add_argument("query", help="Item name or part of it")
    text_parser.add_argument("--limit", "-n", type=int, default=10, help="Maximum matches")
    text_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # preload command
    preload_parser = subparsers.add_parser("preload", help="Warm the cache with common searches")
    preload_parser.add_argument("queries", nargs="*", help="Queries (default: built-in popular list)")

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show cache statistics")
    stats_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # clear command
    subparsers.add_parser("clear", help="Empty the cache")

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = get_config()
    setup_logging(config, args.verbose)

    commands = {
        "search-image": cmd_search_image,
        "search-text": cmd_search_text,
        "preload": cmd_preload,
        "stats": cmd_stats,
        "clear": cmd_clear,
    }

    return commands[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
