#!/usr/bin/env python3
"""
Validate city content files -- run before deploying new or translated cities.

Usage:
    python3 scripts/validate_data.py                    # settings.content_dir (data/cities)
    python3 scripts/validate_data.py --dir path/to/cities

Exits 1 if any file fails to load (bad JSON or schema). Warnings (duplicate
place slugs/ids, slug/filename mismatch) are printed but do not fail.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from citybasic.config import settings  # noqa: E402
from citybasic.content.checks import check_dir  # noqa: E402

# ANSI colors
GREEN = "\033[32m"
RED = "\033[31m"
YELLOW = "\033[33m"
RESET = "\033[0m"
BOLD = "\033[1m"

PASS = f"{GREEN}PASS{RESET}"
FAIL = f"{RED}FAIL{RESET}"
WARN = f"{YELLOW}WARN{RESET}"


def main():
    parser = argparse.ArgumentParser(description="Validate city content JSON files")
    parser.add_argument("--dir", default=settings.content_dir, help="Directory of city JSON files")
    args = parser.parse_args()

    content_dir = Path(args.dir)
    if not content_dir.is_dir():
        print(f"  {FAIL}  Cities directory not found: {content_dir}")
        sys.exit(1)

    reports = check_dir(content_dir)
    if not reports:
        print(f"  {FAIL}  No city files found in {content_dir}")
        sys.exit(1)

    print()
    print(f"{BOLD}Content check: {content_dir}{RESET}")
    errors = warnings = 0
    for report in reports:
        if report.ok:
            print(f"  {PASS}  {report.name}")
        else:
            print(f"  {FAIL}  {report.name}")
            for error in report.errors:
                print(f"          {error}")
            errors += 1
        for warning in report.warnings:
            print(f"  {WARN}  {report.name}: {warning}")
            warnings += 1

    print()
    print("-" * 50)
    if errors:
        print(f"{RED}{BOLD}{errors} FILE(S) FAILED{RESET}" + (f", {warnings} warning(s)" if warnings else ""))
        print()
        sys.exit(1)
    print(f"{GREEN}{BOLD}ALL {len(reports)} FILES VALID{RESET}" + (f" ({warnings} warning(s))" if warnings else ""))
    print()
    sys.exit(0)


if __name__ == "__main__":
    main()
