"""
資料模型 — 變數、集合、commit 請求與 diff 結果

除了 UI 編輯中的 CommitData，其餘模型都是建立後不再修改的值物件。
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class AliasRef:
    """指向另一個變數的別名（VARIABLE_ALIAS），以穩定 id 表示."""
    target_id: str


@dataclass(frozen=True)
class ModeValue:
    raw_value: Any
    display_value: str
    type: str
    resolved_value: Optional[str] = None
    resolved_name: Optional[str] = None

    def export_value(self) -> str:
        """$value 優先使用 resolvedValue（例如 hex 色碼）."""
        if self.resolved_value is not None:
            return self.resolved_value
        return self.display_value

    def to_dict(self) -> dict:
        raw = self.raw_value
        if isinstance(raw, AliasRef):
            raw = {"type": "VARIABLE_ALIAS", "id": raw.target_id}
        data = {
            "value": raw,
            "displayValue": self.display_value,
            "type": self.type,
        }
        if self.resolved_value is not None:
            data["resolvedValue"] = self.resolved_value
        if self.resolved_name is not None:
            data["resolvedName"] = self.resolved_name
        return data


@dataclass(frozen=True)
class Variable:
    """單一變數跨所有 mode 的格式化結果."""
    name: str
    type: str
    description: str = ""
    hidden: bool = False
    modes: dict = field(default_factory=dict)

    @property
    def path(self) -> list:
        return self.name.split("/")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "hiddenFromPublishing": self.hidden,
            "modes": {mode: mv.to_dict() for mode, mv in self.modes.items()},
        }


@dataclass(frozen=True)
class VariableCollection:
    name: str
    modes: list = field(default_factory=list)
    variables: list = field(default_factory=list)
    hidden: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "modes": list(self.modes),
            "variables": [v.to_dict() for v in self.variables],
        }


@dataclass
class CommitData:
    """UI 編輯中的 commit 請求（以值傳入 commit pipeline）."""
    branch: str
    message: str = ""
    filename: str = "variables.json"
    content: str = ""
    base_branch: str = "main"


@dataclass(frozen=True)
class ExistingPR:
    number: int
    title: str
    html_url: str
    head: str


class _Absent:
    """DiffChange 中「該側沒有這個屬性」的標記，與 JSON null 區分."""

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


@dataclass(frozen=True)
class DiffChange:
    """單一葉節點變更；old/new 為 ABSENT 代表該側不存在（新增或刪除），None 是 JSON null."""
    path: tuple
    old_value: Any = ABSENT
    new_value: Any = ABSENT

    @property
    def joined_path(self) -> str:
        return "/".join(self.path)

    @property
    def kind(self) -> str:
        if self.old_value is ABSENT:
            return "added"
        if self.new_value is ABSENT:
            return "removed"
        return "changed"


@dataclass(frozen=True)
class CommitResult:
    sha: str
    url: str
    message: str = ""
    tree_sha: str = ""
    parent_sha: str = ""
