"""
Token 匯出 — 格式化集合 → design tokens JSON

單一 mode 的集合直接攤平在集合名稱下；多 mode 集合先依 mode 分組。
葉節點：{"$value", "$type", "$description"?, "$resolvedFrom"?}，
變數路徑（例如 "bg/page"）整段當作 key，不展開成巢狀物件。

plugin 傳來的 paint / text / effect styles 另外匯出成 colors / typography / effects
區段，併入同一份 tree。
"""

import json
from typing import Any, Optional

from .formatter import rgba_to_hex
from .models import ModeValue, Variable, VariableCollection

DEFAULT_FILENAME = "variables.json"

# style 類別 → 匯出區段名稱
STYLE_SECTIONS = {"paint": "colors", "text": "typography", "effect": "effects"}


def _warn(msg: str) -> None:
    print(f"   ⚠️  [export] {msg}")


def _default(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


def token_leaf(variable: Variable, mode_value: ModeValue) -> dict:
    leaf = {
        "$value": mode_value.export_value(),
        "$type": variable.type,
    }
    if variable.description:
        leaf["$description"] = variable.description
    if mode_value.resolved_name:
        leaf["$resolvedFrom"] = mode_value.resolved_name
    return leaf


def _with_description(token: dict, style: dict) -> dict:
    if style.get("description"):
        token["$description"] = style["description"]
    return token


def paint_token(style: dict) -> Optional[dict]:
    """只匯出第一個 SOLID paint；漸層、圖片等回傳 None."""
    paints = style.get("paints") or []
    if not paints:
        return None
    paint = paints[0]
    color = paint.get("color")
    if paint.get("type") != "SOLID" or not color:
        return None
    value = rgba_to_hex(color["r"], color["g"], color["b"], _default(paint.get("opacity"), 1))
    return _with_description({"$value": value, "$type": "color"}, style)


def text_token(style: dict) -> dict:
    font_name = style.get("fontName") or {}
    line_height = style.get("lineHeight") or {}
    letter_spacing = style.get("letterSpacing") or {}
    value = {
        "fontFamily": font_name.get("family") or "System",
        "fontSize": _default(style.get("fontSize"), 16),
        "lineHeight": _default(line_height.get("value"), "normal"),
        "letterSpacing": _default(letter_spacing.get("value"), 0),
        "paragraphSpacing": _default(style.get("paragraphSpacing"), 0),
        "textCase": style.get("textCase") or "none",
        "textDecoration": style.get("textDecoration") or "none",
    }
    return _with_description({"$value": value, "$type": "typography"}, style)


def effect_token(style: dict) -> dict:
    shadows = []
    for effect in style.get("effects") or []:
        shadow = {"type": effect.get("type")}
        color = effect.get("color")
        if color:
            shadow["color"] = rgba_to_hex(color["r"], color["g"], color["b"], _default(color.get("a"), 1))
        shadow["offset"] = effect.get("offset") or {"x": 0, "y": 0}
        shadow["radius"] = _default(effect.get("radius"), 0)
        shadow["spread"] = _default(effect.get("spread"), 0)
        shadows.append(shadow)
    return _with_description({"$value": shadows, "$type": "shadow"}, style)


class TokenExporter:

    def _mode_tokens(self, collection: VariableCollection, mode: str) -> dict:
        tokens = {}
        for variable in collection.variables:
            if variable.hidden:
                continue
            mode_value: Optional[ModeValue] = variable.modes.get(mode)
            if mode_value is None:
                continue
            tokens[variable.name] = token_leaf(variable, mode_value)
        return tokens

    def export(self, collections: list) -> dict:
        tree = {}
        for collection in collections:
            if collection.hidden:
                continue
            if len(collection.modes) > 1:
                tree[collection.name] = {
                    mode: self._mode_tokens(collection, mode) for mode in collection.modes
                }
            elif collection.modes:
                tree[collection.name] = self._mode_tokens(collection, collection.modes[0])
            else:
                tree[collection.name] = {}
        return tree

    def export_styles(self, styles: Any) -> dict:
        """
        {"paint": [...], "text": [...], "effect": [...]} → colors / typography / effects 區段。

        REST API 的 styles 只有 metadata（list），沒有可匯出的值，回傳 {}。
        """
        if not isinstance(styles, dict):
            return {}
        sections = {}
        for style_type, section in STYLE_SECTIONS.items():
            tokens = {}
            for style in styles.get(style_type) or []:
                name = style.get("name")
                if not name:
                    continue
                if style_type == "paint":
                    token = paint_token(style)
                    if token is None:
                        _warn(f"略過非 SOLID 的 paint style：{name}")
                        continue
                elif style_type == "text":
                    token = text_token(style)
                else:
                    token = effect_token(style)
                tokens[name] = token
            if tokens:
                sections[section] = tokens
        return sections

    def merge_styles(self, tree: dict, sections: dict) -> dict:
        """把 style 區段併入變數 tree；同名時保留變數 token."""
        for section, tokens in sections.items():
            target = tree.setdefault(section, {})
            for name, token in tokens.items():
                if name in target:
                    _warn(f"{section}/{name} 已有同名變數，略過 style")
                    continue
                target[name] = token
        return tree

    def export_all(self, collections: list, styles: Any = None) -> dict:
        return self.merge_styles(self.export(collections), self.export_styles(styles))

    def to_json(self, tree: dict) -> str:
        return json.dumps(tree, indent=2, ensure_ascii=False) + "\n"


def export_tokens(collections: list, styles: Any = None) -> dict:
    return TokenExporter().export_all(collections, styles)


def export_json(collections: list, styles: Any = None) -> str:
    exporter = TokenExporter()
    return exporter.to_json(exporter.export_all(collections, styles))
