"""
Figma 變數讀取 — REST API 與本機 JSON dump

將 Figma Variables（plugin API 與 REST `variables/local` 同構）解析成
以 id 為鍵的扁平變數表；別名以 AliasRef 表示，不使用物件指標。
remote（外部發佈、非本檔擁有）的集合與變數在此階段就被排除。
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import requests

from .errors import AuthError, FigmaAPIError, NetworkError, NotFoundError
from .models import AliasRef

ALIAS_TYPE = "VARIABLE_ALIAS"


def _warn(msg: str) -> None:
    print(f"   ⚠️  [figma] {msg}")


@dataclass
class RawVariable:
    id: str
    name: str
    resolved_type: str
    collection_id: str
    values_by_mode: dict = field(default_factory=dict)
    description: str = ""
    hidden: bool = False
    remote: bool = False


@dataclass
class RawCollection:
    id: str
    name: str
    modes: list = field(default_factory=list)  # [(modeId, modeName), ...]
    default_mode_id: Optional[str] = None
    variable_ids: list = field(default_factory=list)
    hidden: bool = False
    remote: bool = False

    @property
    def mode_names(self) -> list:
        return [name for _, name in self.modes]


@dataclass
class VariableGraph:
    """Host 變數圖：集合清單 + 以 id 為鍵的變數表."""
    collections: list = field(default_factory=list)
    variables: dict = field(default_factory=dict)

    def get(self, variable_id: str) -> Optional[RawVariable]:
        return self.variables.get(variable_id)

    def collection_for(self, variable: RawVariable) -> Optional[RawCollection]:
        for collection in self.collections:
            if collection.id == variable.collection_id:
                return collection
        return None

    def variables_in(self, collection: RawCollection) -> list:
        result = []
        for var_id in collection.variable_ids:
            var = self.variables.get(var_id)
            if var is None:
                _warn(f"集合 '{collection.name}' 引用不存在的變數 {var_id}，略過")
                continue
            if var.remote:
                continue
            result.append(var)
        return result


def _parse_value(value: Any) -> Any:
    if isinstance(value, dict) and value.get("type") == ALIAS_TYPE:
        return AliasRef(target_id=value["id"])
    return value


def parse_local_variables(payload: dict) -> VariableGraph:
    """解析 `{"meta": {"variableCollections": ..., "variables": ...}}`.

    也接受沒有 "meta" 外層的 dump（plugin 端直接匯出的格式）。
    """
    meta = payload.get("meta", payload) if isinstance(payload, dict) else {}
    raw_collections = meta.get("variableCollections", {}) or {}
    raw_variables = meta.get("variables", {}) or {}

    variables = {}
    for var_id, raw in raw_variables.items():
        if raw.get("remote"):
            continue
        variables[var_id] = RawVariable(
            id=raw.get("id", var_id),
            name=raw.get("name", var_id),
            resolved_type=raw.get("resolvedType", "STRING"),
            collection_id=raw.get("variableCollectionId", ""),
            values_by_mode={m: _parse_value(v) for m, v in (raw.get("valuesByMode") or {}).items()},
            description=raw.get("description") or "",
            hidden=bool(raw.get("hiddenFromPublishing", False)),
            remote=False,
        )

    collections = []
    for coll_id, raw in raw_collections.items():
        if raw.get("remote"):
            continue
        modes = [(m["modeId"], m.get("name", m["modeId"])) for m in raw.get("modes", [])]
        var_ids = raw.get("variableIds")
        if var_ids is None:
            # 舊版 dump 沒有 variableIds，改用 variableCollectionId 反查
            var_ids = [v.id for v in variables.values() if v.collection_id == coll_id]
        collections.append(RawCollection(
            id=raw.get("id", coll_id),
            name=raw.get("name", coll_id),
            modes=modes,
            default_mode_id=raw.get("defaultModeId") or (modes[0][0] if modes else None),
            variable_ids=list(var_ids),
            hidden=bool(raw.get("hiddenFromPublishing", False)),
            remote=False,
        ))
    return VariableGraph(collections=collections, variables=variables)


class FigmaAPIClient:
    """Figma REST API 唯讀封裝."""

    BASE_URL = "https://api.figma.com/v1"

    def __init__(self, token: str, timeout: float = 30):
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "X-Figma-Token": token,
            "Content-Type": "application/json",
        })

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        url = f"{self.BASE_URL}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Figma API unreachable: {e}") from e
        if resp.status_code in (401, 403):
            raise AuthError("Figma token 無效或已過期（FIGMA_TOKEN）", resp.status_code)
        if resp.status_code == 404:
            raise NotFoundError(f"Figma 找不到資源：{path}", 404)
        if resp.status_code >= 400:
            raise FigmaAPIError(f"Figma API error {resp.status_code}", resp.status_code)
        return resp.json()

    def get_local_variables(self, file_key: str) -> dict:
        return self._get(f"/files/{file_key}/variables/local")

    def get_file_styles(self, file_key: str) -> list:
        data = self._get(f"/files/{file_key}/styles")
        return data.get("meta", {}).get("styles", [])


class FigmaVariableSource:
    """VariableSource：直接從 Figma REST API 讀取."""

    def __init__(self, client: FigmaAPIClient, file_key: str):
        self.client = client
        self.file_key = file_key

    def get_variable_graph(self) -> VariableGraph:
        return parse_local_variables(self.client.get_local_variables(self.file_key))

    def get_styles(self) -> list:
        return self.client.get_file_styles(self.file_key)


class JsonFileVariableSource:
    """VariableSource：讀取 plugin 匯出的 JSON dump（每次呼叫重新讀檔）."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> dict:
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"'{self.path}' 格式錯誤，應為 JSON 物件")
        return data

    def get_variable_graph(self) -> VariableGraph:
        return parse_local_variables(self._load())

    def get_styles(self) -> Any:
        """plugin dump 的 styles：{"paint": [...], "text": [...], "effect": [...]}."""
        return self._load().get("styles", {})
