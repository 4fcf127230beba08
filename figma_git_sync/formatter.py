"""
值格式化 — 將 Figma 原始值依宣告型別轉成顯示字串

COLOR → #rrggbb（alpha ≠ 1 時附加兩位 alpha）、BOOLEAN → "true"/"false"、
FLOAT/STRING → 字串，其他型別以 JSON 字串作為 fallback。純函式，無副作用。
"""

import json
import math
import re
from typing import Any

HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{8}|[A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
_HEX_PARSE_RE = re.compile(r"^#?([A-Fa-f0-9]{6})([A-Fa-f0-9]{2})?$")


def _channel_to_hex(n: float) -> str:
    # 四捨五入（half-up），與 Figma 顯示一致
    byte = int(math.floor(float(n) * 255 + 0.5))
    byte = max(0, min(255, byte))
    return f"{byte:02x}"


def rgba_to_hex(r: float, g: float, b: float, a: float = 1) -> str:
    hex_str = f"#{_channel_to_hex(r)}{_channel_to_hex(g)}{_channel_to_hex(b)}"
    if a is not None and a != 1:
        hex_str += _channel_to_hex(a)
    return hex_str


def hex_to_rgba(hex_str: str) -> dict:
    """#rrggbb 或 #rrggbbaa → {r, g, b, a}（0–1 浮點）."""
    match = _HEX_PARSE_RE.match(hex_str.strip())
    if not match:
        raise ValueError(f"Not a hex color: {hex_str!r}")
    rgb, alpha = match.group(1), match.group(2)
    r, g, b = (int(rgb[i:i + 2], 16) / 255 for i in (0, 2, 4))
    a = int(alpha, 16) / 255 if alpha else 1.0
    return {"r": r, "g": g, "b": b, "a": a}


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_RE.match(value))


def is_color_value(value: Any) -> bool:
    return isinstance(value, dict) and all(k in value for k in ("r", "g", "b"))


def _format_number(value) -> str:
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_value(value: Any, var_type: str) -> str:
    """依變數型別回傳顯示字串."""
    if value is None:
        return ""
    if var_type == "COLOR" and is_color_value(value):
        return rgba_to_hex(value["r"], value["g"], value["b"], value.get("a", 1))
    if var_type == "BOOLEAN" or isinstance(value, bool):
        return "true" if value else "false"
    if var_type in ("FLOAT", "STRING") and not isinstance(value, (dict, list)):
        if isinstance(value, (int, float)):
            return _format_number(value)
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if isinstance(value, (int, float)):
        return _format_number(value)
    return str(value)
