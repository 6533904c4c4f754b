# services/decoder.py
import json
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from models import OperationDescriptor
from services.catalog import status_code_label

STATUS_FIELD = "status"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def format_value(value: Any, field_name: Optional[str] = None) -> Any:
    """Display form of one decoded field."""
    if field_name == STATUS_FIELD and _is_int(value):
        return f"{value} ({status_code_label(value)})"

    if isinstance(value, bool):
        return value

    # uint256 values can exceed 64 bits
    if _is_int(value):
        return str(value)

    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()

    if isinstance(value, str):
        return value

    if isinstance(value, Mapping):
        return {str(k): format_value(v, str(k)) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return [format_value(v) for v in value]

    return value


def _is_numeric_key(key: Any) -> bool:
    return _is_int(key) or (isinstance(key, str) and key.isdigit())


def _named_fields(raw: Any) -> Optional[List[Tuple[str, Any]]]:
    """Field names carried by the result itself (mapping or namedtuple), if any."""
    if isinstance(raw, Mapping):
        items = [(str(k), v) for k, v in raw.items() if not _is_numeric_key(k)]
        return items or None
    if isinstance(raw, tuple) and hasattr(raw, "_asdict"):
        return list(raw._asdict().items())
    return None


def _positional(raw: Any) -> List[Any]:
    if isinstance(raw, Mapping):
        return [raw[k] for k in sorted(raw, key=int)]
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


def decode_result(raw: Any, descriptor: OperationDescriptor) -> Any:
    """
    Map a raw call result onto the descriptor's declared return names.

    Names supplied by the result win; otherwise values are zipped in order
    with the declared names. Without a declared return shape the result is
    returned as a formatted list (sequences) or a single formatted value.
    """
    names = descriptor.return_names

    if not names:
        if isinstance(raw, (list, tuple)):
            return [format_value(v) for v in raw]
        return format_value(raw)

    fields = _named_fields(raw)
    if fields is None:
        fields = []
        for idx, value in enumerate(_positional(raw)):
            name = names[idx] if idx < len(names) else f"value{idx}"
            fields.append((name, value))

    decoded: Dict[str, Any] = {}
    for name, value in fields:
        decoded[name] = format_value(value, name)
    return decoded


def render_decoded(decoded: Any) -> str:
    if isinstance(decoded, dict):
        return json.dumps(decoded, indent=2, ensure_ascii=False)
    if isinstance(decoded, list):
        return "\n".join(f"[{idx}]: {item}" for idx, item in enumerate(decoded))
    return str(decoded)
