# services/verification.py
from typing import Any, Callable, Dict, Optional
from urllib.parse import unquote

from exceptions import FetchFailure
from logger import get_logger
from models import ProductMetadata, VerificationView
from services.catalog import status_css_class, status_display_label

log = get_logger("verification")

PLACEHOLDER = "—"
DEFAULT_ERROR = "There was a problem verifying this product."

CoreFetcher = Callable[[str], Dict[str, Any]]
MetadataLoader = Callable[[str], Optional[ProductMetadata]]


def product_id_from_path(path: str) -> str:
    """/verify/p01 -> p01. Expects the still-encoded path; decodes the last segment once."""
    parts = [p for p in (path or "").split("/") if p]
    return unquote(parts[-1]) if parts else ""


def display_text(value: Any) -> str:
    if value is None or value == "":
        return PLACEHOLDER
    return str(value)


def render_verification(
    product_id: str,
    fetch_core: Optional[CoreFetcher],
    load_metadata: Optional[MetadataLoader] = None,
) -> VerificationView:
    """
    loading -> result, or loading -> error. One transition, no retry;
    any failure while fetching or formatting lands on the error state.
    """
    view = VerificationView(product_id=product_id or "Unknown")

    try:
        if fetch_core is None:
            raise FetchFailure("Blockchain client not initialized.")

        core = fetch_core(product_id)
        log.debug(f"Core product data for {product_id}: {core}")

        status_index = core.get("statusIndex")
        if status_index is None:
            status_index = 0
        status_index = int(status_index)
        is_authentic = core.get("isAuthentic")

        view.core = core
        view.status_label = status_display_label(status_index)
        view.auth_label = "Authentic" if is_authentic else "Not authentic"
        view.manufacturer = display_text(core.get("manufacturer"))
        view.owner = display_text(core.get("currentOwner"))
        view.factory = display_text(core.get("factoryId"))
        view.status_class = status_css_class(status_index, is_authentic)

        if load_metadata is not None:
            view.metadata = load_metadata(product_id)

        view.state = "result"

    except Exception as e:
        log.error(f"Verification error for {product_id!r}: {e}")
        view.state = "error"
        view.error_message = str(e) or DEFAULT_ERROR

    return view
