from __future__ import annotations

import math
import re


def parse_price_cl(value: object) -> float:
    """Parse a CLP-formatted amount: "$2.450" -> 2450.0, "2.450,50" -> 2450.5."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = re.sub(r"[^0-9,.]", "", str(value))
    text = text.replace(".", "").replace(",", ".")
    try:
        return float(text)
    except ValueError:
        return 0.0


def format_price_cl(value: object, decimals: int = 2) -> str:
    if value is None:
        return "$ 0"
    num = value if isinstance(value, (int, float)) and not isinstance(value, bool) else parse_price_cl(value)
    num = float(num)
    if not math.isfinite(num):
        return "$ 0"

    decimals = max(0, int(decimals))
    fixed = f"{round(num, decimals):.{decimals}f}"
    int_raw, _, dec_raw = fixed.partition(".")
    sign = "-" if int_raw.startswith("-") else ""
    digits = int_raw.lstrip("-")

    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    int_part = sign + ".".join(groups)

    dec_part = dec_raw.rstrip("0")
    return f"$ {int_part},{dec_part}" if dec_part else f"$ {int_part}"


def to_finite_float(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(str(value).strip()) if not isinstance(value, (int, float)) else float(value)
    except ValueError:
        return None
    return num if math.isfinite(num) else None
