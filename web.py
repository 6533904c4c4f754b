from datetime import datetime, timezone
from urllib.parse import quote, urlsplit
from zoneinfo import ZoneInfo

from flask import Flask, Response, flash, jsonify, redirect, render_template, request, url_for

from config import DISPLAY_TZ, PUBLIC_BASE_URL, SECRET_KEY, WEB_HOST, WEB_PORT, load_chain_config
from db import get_product_metadata, init_metadata_db, metadata_as_dict
from logger import get_logger
from services.dispatcher import fetch_product_core
from services.qr_codes import build_verify_url, qr_filename, render_qr_png
from services.verification import PLACEHOLDER, display_text, product_id_from_path, render_verification

log = get_logger("web")

app = Flask(__name__)
app.secret_key = SECRET_KEY

# IMPORTANT: waitress imports the module; it does NOT run __main__
# So we initialize schema at import time.
init_metadata_db()

CHAIN_CFG = load_chain_config()

TZ = ZoneInfo(DISPLAY_TZ)


def _to_dt_utc(value):
    # value can be ISO string or datetime
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def format_ts(value, fmt="%b %d, %Y · %I:%M %p"):
    try:
        dt_utc = _to_dt_utc(value)
    except ValueError:
        return PLACEHOLDER
    if not dt_utc:
        return PLACEHOLDER
    return dt_utc.astimezone(TZ).strftime(fmt)

app.jinja_env.filters["ts"] = format_ts
app.jinja_env.filters["dash"] = display_text


def _origin() -> str:
    return PUBLIC_BASE_URL or request.host_url.rstrip("/")

def _fetch_core(product_id: str):
    return fetch_product_core(CHAIN_CFG, product_id)

def _load_metadata(product_id: str):
    return get_product_metadata(product_id)


@app.route("/")
def index():
    product_id = None
    verify_url = None

    if "productId" in request.args:
        product_id = (request.args.get("productId") or "").strip()
        if not product_id:
            flash("Please enter a product ID")
        else:
            verify_url = build_verify_url(_origin(), product_id)

    return render_template("index.html", product_id=product_id, verify_url=verify_url)


@app.route("/qr/image")
def qr_image():
    product_id = (request.args.get("productId") or "").strip()
    if not product_id:
        return Response("Please enter a product ID", status=400, mimetype="text/plain")
    png = render_qr_png(build_verify_url(_origin(), product_id))
    return Response(png, mimetype="image/png")


@app.route("/qr/download")
def qr_download():
    product_id = (request.args.get("productId") or "").strip()
    if not product_id:
        flash("Please generate a QR code first")
        return redirect(url_for("index"))

    png = render_qr_png(build_verify_url(_origin(), product_id))
    log.info(f"QR download for {product_id}")
    return Response(
        png,
        mimetype="image/png",
        headers={"Content-Disposition": f'attachment; filename="{qr_filename(product_id)}"'},
    )


def _encoded_request_path() -> str:
    # Flask has already percent-decoded request.path (%2F included)
    raw = request.environ.get("RAW_URI") or request.environ.get("REQUEST_URI")
    if raw:
        return urlsplit(raw).path
    return quote(request.path)


@app.route("/verify/<path:subpath>")
def verify(subpath):
    product_id = product_id_from_path(_encoded_request_path())
    view = render_verification(product_id, _fetch_core, _load_metadata)
    log.info(f"verify {product_id!r} -> {view.state} {view.status_label or view.error_message}")
    return render_template("verify.html", view=view)


@app.route("/api/products/<product_id>")
def product_api(product_id):
    view = render_verification(product_id, _fetch_core, _load_metadata)
    if view.state != "result":
        return jsonify({"productId": product_id, "error": view.error_message}), 502

    core = dict(view.core)
    return jsonify({
        "productId": product_id,
        "core": {k: (str(v) if isinstance(v, int) and not isinstance(v, bool) else v) for k, v in core.items()},
        "statusLabel": view.status_label,
        "statusClass": view.status_class,
        "authenticity": view.auth_label,
        "metadata": metadata_as_dict(view.metadata),
    })


def serve() -> None:
    from waitress import serve as waitress_serve

    log.info(f"===== WEB START: {datetime.now(timezone.utc).isoformat()} on {WEB_HOST}:{WEB_PORT} =====")
    try:
        waitress_serve(app, host=WEB_HOST, port=WEB_PORT)
    finally:
        log.info(f"===== WEB EXIT: {datetime.now(timezone.utc).isoformat()} =====")


if __name__ == "__main__":
    # For local dev only. Waitress uses web:app
    app.run(host=WEB_HOST, port=WEB_PORT, debug=True)
