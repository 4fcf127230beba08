"""
共用測試工具：假的 requests.Session 與 Figma 變數 payload 產生器。
不需要網路，也不需要真實 token。
"""
import json
import re

import pytest

from figma_git_sync.figma_reader import parse_local_variables
from figma_git_sync.github import GitHubService

ORG = "acme"
REPO = "tokens"

_REPO_PREFIX = re.compile(r"^.*?/repos/[^/]+/[^/]+")


class FakeResponse:
    def __init__(self, status_code=200, data=None, reason="", text=None):
        self.status_code = status_code
        self._data = data
        self.reason = reason or ("OK" if status_code < 400 else "Error")
        if text is not None:
            self.content = text.encode("utf-8")
        else:
            self.content = b"" if data is None else json.dumps(data).encode("utf-8")

    def json(self):
        if self._data is None:
            raise ValueError("No JSON body")
        return self._data


class FakeSession:
    """依 (method, path) 回傳預先排好的回應，並記錄每一次呼叫。

    path 是去掉 `<api>/repos/<org>/<repo>` 之後的部分，不論 org / repo 為何。
    同一路由排了多個回應時依序消耗，最後一個會一直重複。
    """

    def __init__(self):
        self.headers = {}
        self.routes = {}
        self.calls = []

    def add(self, method, path, data=None, status=200):
        self.routes.setdefault((method, path), []).append(FakeResponse(status, data))
        return self

    def replace(self, method, path, data=None, status=200):
        self.routes[(method, path)] = [FakeResponse(status, data)]
        return self

    def request(self, method, url, headers=None, timeout=None, params=None, json=None):
        path = _REPO_PREFIX.sub("", url, count=1)
        self.calls.append({
            "method": method,
            "url": url,
            "path": path,
            "headers": dict(headers or {}),
            "params": params,
            "json": json,
        })
        queue = self.routes.get((method, path))
        if not queue:
            return FakeResponse(404, {"message": "Not Found"})
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def call_paths(self):
        return [(c["method"], c["path"]) for c in self.calls]


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def service(fake_session):
    return GitHubService(token="ghp_test", organization=ORG, repository=REPO, session=fake_session)


# ─── Figma 變數 payload ──────────────────────────────────────────────────────

def coll(coll_id, name, modes, variable_ids, **extra):
    data = {
        "id": coll_id,
        "name": name,
        "modes": [{"modeId": f"{coll_id}:{m}", "name": m} for m in modes],
        "defaultModeId": f"{coll_id}:{modes[0]}" if modes else None,
        "variableIds": list(variable_ids),
        "remote": False,
        "hiddenFromPublishing": False,
    }
    data.update(extra)
    return data


def var(var_id, name, var_type, coll_id, values, **extra):
    """values: {modeName: rawValue}，mode id 依 coll() 的規則組成。"""
    data = {
        "id": var_id,
        "name": name,
        "resolvedType": var_type,
        "variableCollectionId": coll_id,
        "valuesByMode": {f"{coll_id}:{m}": v for m, v in values.items()},
        "description": "",
        "remote": False,
        "hiddenFromPublishing": False,
    }
    data.update(extra)
    return data


def alias(target_id):
    return {"type": "VARIABLE_ALIAS", "id": target_id}


def payload(collections, variables):
    return {
        "meta": {
            "variableCollections": {c["id"]: c for c in collections},
            "variables": {v["id"]: v for v in variables},
        }
    }


WHITE = {"r": 1, "g": 1, "b": 1, "a": 1}
BLACK = {"r": 0, "g": 0, "b": 0, "a": 1}

# plugin 送來的 local styles（paint / text / effect）
STYLES = {
    "paint": [
        {"name": "brand/primary", "description": "Primary", "paints": [
            {"type": "SOLID", "color": {"r": 1, "g": 0, "b": 0}, "opacity": 0.5},
        ]},
        {"name": "brand/gradient", "paints": [{"type": "GRADIENT_LINEAR", "gradientStops": []}]},
    ],
    "text": [
        {"name": "heading/h1", "fontName": {"family": "Inter", "style": "Bold"}, "fontSize": 32,
         "lineHeight": {"value": 40, "unit": "PIXELS"}, "letterSpacing": {"value": -0.5, "unit": "PIXELS"}},
    ],
    "effect": [
        {"name": "shadow/card", "effects": [
            {"type": "DROP_SHADOW", "color": {"r": 0, "g": 0, "b": 0, "a": 0.25},
             "offset": {"x": 0, "y": 2}, "radius": 4},
        ]},
    ],
}


class FakeSource:
    """VariableSource 假實作：回傳固定 payload，或丟出指定錯誤."""

    def __init__(self, data=None, styles=None, error=None):
        self.data = data if data is not None else payload(
            [coll("C", "colors", ["Default"], ["v"])],
            [var("v", "bg", "COLOR", "C", {"Default": WHITE})],
        )
        self.styles = styles or []
        self.error = error

    def get_variable_graph(self):
        if self.error:
            raise self.error
        return parse_local_variables(self.data)

    def get_styles(self):
        return self.styles


# ─── GitHub 回應 ─────────────────────────────────────────────────────────────

def stub_branch(fake_session, branch="main", tip="abc123"):
    """在 FakeSession 上排好一次成功 commit 需要的回應."""
    ref_path = f"/git/refs/heads/{branch}"
    fake_session.add("GET", ref_path, {"ref": f"refs/heads/{branch}", "object": {"sha": tip, "type": "commit"}})
    fake_session.add("POST", "/git/blobs", {"sha": "blob111"})
    fake_session.add("POST", "/git/trees", {"sha": "tree222"})
    fake_session.add("POST", "/git/commits", {
        "sha": "def456",
        "html_url": "https://github.com/acme/tokens/commit/def456",
        "message": "Update variables.json",
        "tree": {"sha": "tree222"},
        "parents": [{"sha": tip}],
    })
    fake_session.add("PATCH", ref_path, {"ref": f"refs/heads/{branch}", "object": {"sha": "def456"}})


def pull(number=7, head="feature/x", base="main", title="Update tokens"):
    return {
        "number": number,
        "title": title,
        "html_url": f"https://github.com/acme/tokens/pull/{number}",
        "state": "open",
        "head": {"ref": head},
        "base": {"ref": base},
    }
