# db.py

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config import METADATA_DB_PATH
from logger import get_logger
from models import ProductMetadata


log = get_logger("db")

# ---------- Metadata DB ----------
def metadata_conn(path: Optional[str] = None) -> sqlite3.Connection:
    conn = sqlite3.connect(path or METADATA_DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn

def init_metadata_db(path: Optional[str] = None) -> None:
    conn = metadata_conn(path)
    cur = conn.cursor()

    cur.execute("""
    CREATE TABLE IF NOT EXISTS product_metadata (
        product_id TEXT PRIMARY KEY,
        name TEXT,
        description TEXT,
        images_json TEXT,
        updated_ts TEXT
    )
    """)

    cur.execute("""
    CREATE INDEX IF NOT EXISTS idx_product_metadata_updated_ts
    ON product_metadata(updated_ts)
    """)

    conn.commit()
    conn.close()


def _row_to_metadata(row: sqlite3.Row) -> ProductMetadata:
    images: List[str] = []
    if row["images_json"]:
        try:
            images = [str(i) for i in json.loads(row["images_json"])]
        except (json.JSONDecodeError, TypeError):
            log.warning(f"Bad images_json for product {row['product_id']}: {row['images_json']!r}")
    return ProductMetadata(
        product_id=row["product_id"],
        name=row["name"],
        description=row["description"],
        images=images,
        updated_ts=row["updated_ts"],
    )

def get_product_metadata(product_id: str, path: Optional[str] = None) -> Optional[ProductMetadata]:
    conn = metadata_conn(path)
    row = conn.execute(
        "SELECT * FROM product_metadata WHERE product_id=?",
        (product_id,)
    ).fetchone()
    conn.close()
    return _row_to_metadata(row) if row else None

def list_product_metadata(limit: int = 100, path: Optional[str] = None) -> List[ProductMetadata]:
    conn = metadata_conn(path)
    rows = conn.execute(
        "SELECT * FROM product_metadata ORDER BY updated_ts DESC LIMIT ?",
        (limit,)
    ).fetchall()
    conn.close()
    return [_row_to_metadata(r) for r in rows]

def upsert_product_metadata(
    product_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    images: Optional[List[str]] = None,
    path: Optional[str] = None,
) -> None:
    now = datetime.now(timezone.utc).isoformat()
    images_json = json.dumps(list(images)) if images is not None else None

    conn = metadata_conn(path)
    conn.execute("""
    INSERT INTO product_metadata (product_id, name, description, images_json, updated_ts)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT(product_id) DO UPDATE SET
        name=COALESCE(excluded.name, product_metadata.name),
        description=COALESCE(excluded.description, product_metadata.description),
        images_json=COALESCE(excluded.images_json, product_metadata.images_json),
        updated_ts=excluded.updated_ts
    """, (product_id, name, description, images_json, now))
    conn.commit()
    conn.close()
    log.info(f"Metadata upserted for product {product_id}")

def metadata_as_dict(meta: Optional[ProductMetadata]) -> Optional[Dict[str, Any]]:
    if meta is None:
        return None
    return {
        "productId": meta.product_id,
        "name": meta.name,
        "description": meta.description,
        "images": meta.images,
        "updatedTs": meta.updated_ts,
    }
