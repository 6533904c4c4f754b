# cli.py
import argparse
import sys
from typing import List, Optional

from config import CONTRACT_ALIAS, PUBLIC_BASE_URL, WEB_PORT, ChainConfig, load_chain_config, private_key_var
from db import init_metadata_db, list_product_metadata
from exceptions import InvokeError, RemoteCallFailure
from logger import get_logger
from services.arguments import normalize_args
from services.catalog import CATALOG
from services.decoder import render_decoded
from services.dispatcher import dispatch
from services.qr_codes import build_verify_url, qr_filename, write_qr_png

log = get_logger("cli")


def _err(msg: str) -> None:
    print(msg, file=sys.stderr)


def usage(cfg: ChainConfig) -> str:
    return f"""
Usage:
  invoke call {{role}} {{functionName}} [params...]
  invoke roles
  invoke ops
  invoke qr {{productId}} [--out FILE] [--base-url URL]
  invoke products [--limit N] [--db FILE]

Examples:
  # Read from contract (no key needed, use '{CONTRACT_ALIAS}' or any alias)
  invoke call {CONTRACT_ALIAS} getProductCore 1001

  # Write as manufacturer
  invoke call manu mintProduct 1001 1 "QmHash..." 1734825600

  # Write as QC
  invoke call qc markQualityPassed 1001 1734825600

  # Write as distributor
  invoke call dst acceptDistributorDelivery p1001

Available role aliases:
  {", ".join(cfg.aliases)}

Note: All operations target the main contract at:
  {cfg.contract_address}
"""


def run_call(cfg: ChainConfig, role_alias: str, func_name: str, params: List[str], w3=None) -> int:
    if not cfg.is_known_alias(role_alias):
        _err(f"❌ Unknown role alias: {role_alias}")
        print("Available:", ", ".join(cfg.aliases))
        return 1

    args = normalize_args(params)
    log.info(f"call {func_name} as {role_alias} params={params} -> {args}")

    try:
        outcome = dispatch(cfg, func_name, args, role_alias, w3=w3, echo=print)
    except RemoteCallFailure as e:
        log.error(f"{func_name} failed: {e} (tx={e.tx_hash})")
        _err("❌ Error calling function:")
        _err(str(e))
        return 1
    except InvokeError as e:
        log.error(f"{func_name} rejected: {e}")
        _err(f"❌ {e}")
        return 1

    if outcome.descriptor.is_view:
        print("✔ Function executed successfully.")
        print("Result:")
        print(render_decoded(outcome.decoded))
    return 0


def list_roles(cfg: ChainConfig) -> int:
    for alias in cfg.aliases:
        if alias == CONTRACT_ALIAS:
            key_state = "read-only"
        elif cfg.private_key_for(alias):
            key_state = "key configured"
        else:
            key_state = f"no key ({private_key_var(alias)})"
        print(f"  {alias:<9} {cfg.address_for(alias)}  [{key_state}]")
    return 0


def list_operations() -> int:
    for op in CATALOG.values():
        params = ", ".join(f"{p.type} {p.name}".strip() for p in op.inputs)
        kind = "view" if op.is_view else "write"
        line = f"  {op.name}({params}) [{kind}]"
        if op.outputs:
            line += " -> " + ", ".join(op.return_names)
        print(line)
    return 0


def make_qr(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(prog="invoke qr")
    parser.add_argument("product_id")
    parser.add_argument("--out", default=None)
    parser.add_argument("--base-url", default=PUBLIC_BASE_URL or f"http://localhost:{WEB_PORT}")
    args = parser.parse_args(argv)

    product_id = args.product_id.strip()
    if not product_id:
        _err("❌ Please enter a product ID")
        return 1

    url = build_verify_url(args.base_url, product_id)
    out = write_qr_png(url, args.out or qr_filename(product_id))
    print(f"Wrote QR image for {url} to {out}")
    log.info(f"QR written: {out} -> {url}")
    return 0


def list_products(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(prog="invoke products")
    parser.add_argument("--limit", type=int, default=100)
    parser.add_argument("--db", default=None)
    args = parser.parse_args(argv)

    init_metadata_db(args.db)
    rows = list_product_metadata(limit=args.limit, path=args.db)
    if not rows:
        print("No product metadata stored.")
        return 0

    # most recently updated first
    for meta in rows:
        images = len(meta.images)
        print(f"  {meta.product_id:<12} {meta.name or '-':<30} {images} image(s)  {meta.updated_ts or '-'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    cfg = load_chain_config()

    if not argv:
        print(usage(cfg))
        return 0

    command, rest = argv[0], argv[1:]

    if command == "call":
        if len(rest) < 2:
            _err("❌ call needs a role alias and a function name")
            print(usage(cfg))
            return 1
        return run_call(cfg, rest[0], rest[1], rest[2:])

    if command == "roles":
        return list_roles(cfg)

    if command == "ops":
        return list_operations()

    if command == "qr":
        return make_qr(rest)

    if command == "products":
        return list_products(rest)

    _err(f"❌ Unknown command: {command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
