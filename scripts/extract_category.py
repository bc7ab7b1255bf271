#!/usr/bin/env python3
"""
extract_category.py
Stream a large product JSONL feed and keep only the products listed under one category.

Usage (example):
python scripts/extract_category.py \
  --input  data/raw/products-full.json \
  --output data/products-men.json \
  --category Men

Notes:
- A product matches when its "category" list contains the value exactly.
- Matching lines are copied verbatim; blank and undecodable lines are skipped.
"""
import argparse
import json
import sys
import time
from pathlib import Path


def has_category(obj, category):
    cats = obj.get("category") if isinstance(obj, dict) else None
    if not isinstance(cats, list):
        return False
    return any(isinstance(c, str) and c == category for c in cats)


def extract_category(input_path, output_path, category, log_every=500_000):
    """Copy matching lines from input_path to output_path. Returns (seen, written, skipped)."""
    seen = written = skipped = 0
    start = time.time()
    with open(input_path, "r", encoding="utf-8") as fin, \
         open(output_path, "w", encoding="utf-8") as fout:
        for line_num, line in enumerate(fin, start=1):
            line = line.strip()
            if not line:
                continue
            seen += 1
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                skipped += 1
                continue
            if has_category(obj, category):
                fout.write(line + "\n")
                written += 1
            if line_num % log_every == 0:
                print(f"[extract] lines {line_num:,} processed, written {written:,}", flush=True)
    elapsed = time.time() - start
    print(f"[extract] finished. wrote {written:,} of {seen:,} products to {output_path} in {elapsed:.1f}s")
    return seen, written, skipped


def main(argv=None):
    parser = argparse.ArgumentParser(description="Filter a JSONL product feed by category.")
    parser.add_argument("--input", required=True, help="Path to the full product feed (JSONL)")
    parser.add_argument("--output", required=True, help="Path to write matching products")
    parser.add_argument("--category", default="Men", help="Category value to keep")
    args = parser.parse_args(argv)

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        _, written, skipped = extract_category(args.input, out, args.category)
    except OSError as e:
        print(f"Error processing files: {e}", file=sys.stderr)
        return 1
    if skipped:
        print(f"Skipped {skipped:,} undecodable lines", file=sys.stderr)
    print(f"Successfully extracted {written:,} '{args.category}' products to {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
