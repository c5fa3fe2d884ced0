#!/usr/bin/env python3
import sys
import json
import argparse

from ciaa_crawler.analysis import report_lines

if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Statistics over a CIAA crawl output file.")
    ap.add_argument("path", nargs="?", default="ciaa-historical-cases.json")
    ap.add_argument("--top", type=int, default=10, help="how many cases to list by amount")
    args = ap.parse_args()

    try:
        with open(args.path, encoding="utf-8") as f:
            cases = json.load(f)
    except (OSError, ValueError) as e:
        print(f"cannot read {args.path}: {e}")
        sys.exit(1)

    for line in report_lines(cases, top_n=args.top, by_accusation=True):
        print(line)
