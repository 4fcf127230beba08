"""
別名解析 — 沿著 VARIABLE_ALIAS 鏈找到最終的具體值

以 visited id 集合迭代追蹤，循環鏈會轉成 CyclicAliasError，
目標 id 不存在則為 AliasResolutionError。
"""

from dataclasses import dataclass
from typing import Any, Optional

from .errors import AliasResolutionError, CyclicAliasError
from .figma_reader import RawVariable, VariableGraph
from .formatter import format_value
from .models import AliasRef


@dataclass(frozen=True)
class ResolvedAlias:
    value: Any
    name: str
    type: str
    resolved_value: Optional[str] = None
    chain: tuple = ()


class AliasResolver:
    """以扁平變數表解析（可能多跳的）別名."""

    def __init__(self, graph: VariableGraph):
        self.graph = graph

    def _mode_value(self, variable: RawVariable, mode_id: Optional[str]) -> Any:
        values = variable.values_by_mode
        if mode_id is not None and mode_id in values:
            return values[mode_id]
        collection = self.graph.collection_for(variable)
        if collection is not None and collection.default_mode_id in values:
            return values[collection.default_mode_id]
        if values:
            return next(iter(values.values()))
        raise AliasResolutionError(variable.id)

    def resolve(self, alias: AliasRef, mode_id: Optional[str] = None) -> ResolvedAlias:
        """回傳最終非別名值與其來源變數名稱。

        跨集合引用時，目標若沒有同一個 mode id，改用目標集合的預設 mode。
        """
        visited = []
        target_id = alias.target_id
        while True:
            if target_id in visited:
                raise CyclicAliasError(target_id, visited)
            target = self.graph.get(target_id)
            if target is None:
                raise AliasResolutionError(target_id, visited)
            visited.append(target_id)

            value = self._mode_value(target, mode_id)
            if isinstance(value, AliasRef):
                target_id = value.target_id
                continue

            return ResolvedAlias(
                value=value,
                name=target.name,
                type=target.resolved_type,
                resolved_value=format_value(value, target.resolved_type),
                chain=tuple(visited),
            )
