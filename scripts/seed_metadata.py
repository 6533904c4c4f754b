# scripts/seed_metadata.py
#
# Load product metadata (name, description, images) into the local store.
# Input: JSON list of {"productId", "name", "description", "images": [...]}

import os, sys, json
import argparse

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from db import init_metadata_db, upsert_product_metadata
from logger import get_logger

log = get_logger("seed_metadata")


def load_records(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = [data]
    return data


def main(argv=None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("json_file")
    args = parser.parse_args(argv)

    init_metadata_db()

    count = 0
    for rec in load_records(args.json_file):
        pid = str(rec.get("productId") or "").strip()
        if not pid:
            log.warning(f"Skipping record without productId: {rec}")
            continue
        upsert_product_metadata(
            pid,
            name=rec.get("name"),
            description=rec.get("description"),
            images=rec.get("images"),
        )
        count += 1

    print(f"✅ Seeded {count} product(s) from {args.json_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
