#!/usr/bin/env python3
"""
Generate the flat sitemap URL list served by GET /api/sitemap.

Usage:
    python3 scripts/generate_sitemap.py
    python3 scripts/generate_sitemap.py --dir data/cities --out public/seo/sitemap.xml --site-url https://citybasic.com

One URL per line: the homepage, every city and place page in English, and
the same pages under /<lang>/ for each translation present on disk.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from citybasic.config import settings  # noqa: E402
from citybasic.sitemap import CITY_PRIORITY, PLACE_PRIORITY, collect_site_urls  # noqa: E402

GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"
BOLD = "\033[1m"


def main():
    parser = argparse.ArgumentParser(description="Generate the sitemap URL list")
    parser.add_argument("--dir", default=settings.content_dir, help="Directory of city JSON files")
    parser.add_argument("--out", default=settings.sitemap_source_paths[0], help="Output path")
    parser.add_argument("--site-url", default=settings.site_url, help="Public site origin")
    args = parser.parse_args()

    if not Path(args.dir).is_dir():
        print(f"{RED}Cities directory not found: {args.dir}{RESET}")
        sys.exit(1)

    entries = collect_site_urls(args.dir, args.site_url)
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text("\n".join(e.loc for e in entries) + "\n", encoding="utf-8")

    cities = sum(1 for e in entries if e.priority == CITY_PRIORITY)
    places = sum(1 for e in entries if e.priority == PLACE_PRIORITY)
    print(f"{GREEN}{BOLD}Sitemap written: {out}{RESET}")
    print(f"  {len(entries)} URLs: 1 homepage, {cities} city pages, {places} place pages")


if __name__ == "__main__":
    main()
