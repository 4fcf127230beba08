"""
Token Diff — 比對兩份 design tokens JSON，產出葉節點層級的變更

1. flatten：遇到帶 $value / $type 的物件視為 token，記錄
   `<祖先路徑>/value|description|type`；否則往下遞迴。
2. compare：兩側路徑聯集，以 canonical JSON 字串比較。
3. render：依路徑字串排序，每筆變更輸出 `@ path` / `- old` / `+ new`。
"""

import json
from typing import Any, Optional, Union

from .formatter import is_hex_color
from .models import ABSENT, DiffChange

TOKEN_PROPERTIES = ("value", "description", "type")
SWATCH_MARKER = "■"


def _warn(msg: str) -> None:
    print(f"   ⚠️  [diff] {msg}")


def _is_token(node: Any) -> bool:
    return isinstance(node, dict) and ("$value" in node or "$type" in node)


def _canonical(value: Any) -> str:
    if value is ABSENT:
        return "\0absent"
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def flatten_tokens(tree: Any, parent_path: Optional[list] = None) -> dict:
    """回傳 { "a/b/value": v, ... }；非 token 的純量葉節點忽略."""
    result: dict = {}

    def traverse(node: Any, path: list) -> None:
        if not isinstance(node, dict):
            return
        if any(f"${prop}" in node for prop in TOKEN_PROPERTIES):
            for prop in TOKEN_PROPERTIES:
                key = f"${prop}"
                if key in node:
                    result["/".join(path + [prop])] = node[key]
            return
        for key, child in node.items():
            traverse(child, path + [key])

    traverse(tree, list(parent_path or []))
    return result


def _load(doc: Union[str, dict, None]) -> Any:
    if doc is None or doc == "":
        return {}
    if isinstance(doc, str):
        return json.loads(doc)
    return doc


class TokenDiffer:
    """比對 branch 上的 tokens 與本機匯出的 tokens."""

    def diff(self, old_doc: Union[str, dict, None], new_doc: Union[str, dict, None]) -> list:
        try:
            old_tree = _load(old_doc)
            new_tree = _load(new_doc)
        except json.JSONDecodeError as e:
            _warn(f"JSON 解析失敗，略過 diff：{e}")
            return []

        old_tokens = flatten_tokens(old_tree)
        new_tokens = flatten_tokens(new_tree)
        changes = []
        for path in sorted(set(old_tokens) | set(new_tokens)):
            old_value = old_tokens.get(path, ABSENT)
            new_value = new_tokens.get(path, ABSENT)
            if _canonical(old_value) == _canonical(new_value):
                continue
            changes.append(DiffChange(
                path=tuple(path.split("/")),
                old_value=old_value,
                new_value=new_value,
            ))
        return changes

    def _format_value(self, action: str, prop: str, value: Any) -> str:
        if not isinstance(value, str):
            return f"{action} {json.dumps(value, ensure_ascii=False)}"
        if prop == "value" and is_hex_color(value):
            return f"{action} {SWATCH_MARKER} {value}"
        return f"{action} {value}"

    def render(self, changes: list) -> str:
        if not changes:
            return ""
        blocks = []
        for change in sorted(changes, key=lambda c: "/".join(c.path)):
            segments = [seg[1:] if seg.startswith("$") else seg for seg in change.path]
            prop = segments[-1] if segments else ""
            lines = [f"@ {'/'.join(segments)}"]
            if change.old_value is not ABSENT:
                lines.append(self._format_value("-", prop, change.old_value))
            if change.new_value is not ABSENT:
                lines.append(self._format_value("+", prop, change.new_value))
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)


def find_json_diff(old_doc, new_doc) -> list:
    return TokenDiffer().diff(old_doc, new_doc)


def format_json_diff(changes: list) -> str:
    return TokenDiffer().render(changes)


def reverse_changes(changes: list) -> list:
    """old/new 對調（diff(B, A) 應等於 reverse(diff(A, B))）."""
    return [
        DiffChange(path=c.path, old_value=c.new_value, new_value=c.old_value)
        for c in changes
    ]


def summarize_changes(changes: list) -> dict:
    summary = {"added": 0, "removed": 0, "changed": 0}
    for change in changes:
        summary[change.kind] += 1
    summary["total"] = len(changes)
    return summary
