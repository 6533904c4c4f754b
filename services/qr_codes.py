# services/qr_codes.py
import io
from urllib.parse import quote

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from logger import get_logger

log = get_logger("qr_codes")

QR_SIZE_PX = 256
QR_BORDER = 4

# characters encodeURIComponent leaves alone besides the ones quote() never escapes
URI_COMPONENT_SAFE = "!*'()"


def build_verify_url(origin: str, product_id: str) -> str:
    if not product_id:
        raise ValueError("Please enter a product ID")
    return f"{origin.rstrip('/')}/verify/{quote(product_id, safe=URI_COMPONENT_SAFE)}"


def qr_filename(product_id: str) -> str:
    return f"qr-{product_id}.png"


def render_qr_png(text: str) -> bytes:
    """Black-on-white PNG, error correction H, roughly QR_SIZE_PX wide."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=QR_BORDER)
    qr.add_data(text)
    qr.make(fit=True)

    modules = qr.modules_count + 2 * QR_BORDER
    qr.box_size = max(1, QR_SIZE_PX // modules)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    log.debug(f"QR rendered for {text} (version {qr.version}, box {qr.box_size})")
    return buf.getvalue()


def write_qr_png(text: str, out_path: str) -> str:
    with open(out_path, "wb") as f:
        f.write(render_qr_png(text))
    return out_path
