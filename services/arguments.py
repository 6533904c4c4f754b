# services/arguments.py
import re
from typing import Any, Iterable, List, Union

_PRODUCT_ID_RE = re.compile(r"p([0-9]+)", re.IGNORECASE)
_DIGITS_RE = re.compile(r"[0-9]+")

def normalize_arg(token: Any) -> Union[int, str, Any]:
    """
    p1001 -> "1001", "1001" -> 1001, anything else unchanged.
    Never fails; bad input is rejected later by the call itself.
    """
    if not isinstance(token, str):
        return token

    m = _PRODUCT_ID_RE.fullmatch(token)
    if m:
        return m.group(1)

    if _DIGITS_RE.fullmatch(token):
        return int(token)

    return token

def normalize_args(tokens: Iterable[Any]) -> List[Any]:
    return [normalize_arg(t) for t in tokens]
