"""
變數正規化 — 單一原始變數 × 集合所有 mode → Variable

別名交給 AliasResolver，其他值直接交給 format_value。
單一變數失敗只會被記錄並排除，不會中斷整個匯出。
"""

from typing import Optional

from .errors import AliasResolutionError
from .figma_reader import RawCollection, RawVariable, VariableGraph
from .formatter import format_value
from .models import AliasRef, ModeValue, Variable, VariableCollection
from .resolver import AliasResolver

HIDDEN_PREFIX = "_"


def _warn(msg: str) -> None:
    print(f"   ⚠️  [normalize] {msg}")


def is_hidden_name(name: str) -> bool:
    """名稱或最後一段以底線開頭者不輸出."""
    return name.startswith(HIDDEN_PREFIX) or name.split("/")[-1].startswith(HIDDEN_PREFIX)


class VariableNormalizer:

    def __init__(self, graph: VariableGraph, strict: bool = False):
        self.graph = graph
        self.resolver = AliasResolver(graph)
        # strict=True 時解析錯誤直接拋出（測試與 CI 用）
        self.strict = strict

    def normalize(self, raw: RawVariable, collection: RawCollection) -> Variable:
        modes = {}
        for mode_id, mode_name in collection.modes:
            if mode_id not in raw.values_by_mode:
                raise KeyError(f"'{raw.name}' 缺少 mode '{mode_name}' 的值")
            value = raw.values_by_mode[mode_id]
            if isinstance(value, AliasRef):
                resolved = self.resolver.resolve(value, mode_id)
                modes[mode_name] = ModeValue(
                    raw_value=value,
                    display_value=resolved.resolved_value or "",
                    type=raw.resolved_type,
                    resolved_value=resolved.resolved_value,
                    resolved_name=resolved.name,
                )
            else:
                modes[mode_name] = ModeValue(
                    raw_value=value,
                    display_value=format_value(value, raw.resolved_type),
                    type=raw.resolved_type,
                )
        return Variable(
            name=raw.name,
            type=raw.resolved_type,
            description=raw.description,
            hidden=raw.hidden or is_hidden_name(raw.name),
            modes=modes,
        )

    def normalize_collection(self, collection: RawCollection) -> VariableCollection:
        variables = []
        for raw in self.graph.variables_in(collection):
            variable = self._safe_normalize(raw, collection)
            if variable is not None:
                variables.append(variable)
        return VariableCollection(
            name=collection.name,
            modes=collection.mode_names,
            variables=variables,
            hidden=collection.hidden or collection.name.startswith(HIDDEN_PREFIX),
        )

    def _safe_normalize(self, raw: RawVariable, collection: RawCollection) -> Optional[Variable]:
        try:
            return self.normalize(raw, collection)
        except (AliasResolutionError, KeyError, TypeError, ValueError) as e:
            if self.strict:
                raise
            _warn(f"略過變數 '{collection.name}/{raw.name}'：{e}")
            return None


def format_collections(graph: VariableGraph, strict: bool = False) -> list:
    """整個變數圖 → 格式化集合清單（含隱藏集合，供 UI 顯示）."""
    normalizer = VariableNormalizer(graph, strict=strict)
    return [normalizer.normalize_collection(c) for c in graph.collections]
