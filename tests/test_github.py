"""
GitHubService 測試：header、狀態碼對應例外、base64 內容、分頁與回應驗證。
用 conftest.FakeSession 取代 requests.Session，不需要網路。
"""
import base64
import json
from unittest.mock import MagicMock

import pytest
import requests

from figma_git_sync.errors import (
    AuthError,
    BranchNotFoundError,
    ConflictError,
    GitHubAPIError,
    NetworkError,
    NotFoundError,
    PullRequestExistsError,
    ValidationError,
)
from figma_git_sync.github import GitHubService

from conftest import FakeResponse, FakeSession


def branch(name, sha="abc123"):
    return {"name": name, "commit": {"sha": sha, "url": f"https://api/commits/{sha}"}, "protected": False}


class TestHeaders:

    def test_auth_and_accept_headers(self, service, fake_session):
        service.get_file_content("variables.json", "main")
        headers = fake_session.calls[-1]["headers"]
        assert headers["Authorization"] == "Bearer ghp_test"
        assert headers["Accept"] == "application/vnd.github.v3+json"

    def test_base_url(self, service):
        assert service.base_url == "https://api.github.com/repos/acme/tokens"

    def test_custom_api_url_trailing_slash(self):
        svc = GitHubService("t", "acme", "tokens", api_url="https://ghe.local/api/v3/", session=FakeSession())
        assert svc.base_url == "https://ghe.local/api/v3/repos/acme/tokens"

    def test_settings_changes_apply_to_next_request(self, service, fake_session):
        service.organization = "other-org"
        service.repository = "design"
        service.token = "new-token"
        service.list_branches()
        call = fake_session.calls[-1]
        assert call["url"].startswith("https://api.github.com/repos/other-org/design/branches")
        assert call["headers"]["Authorization"] == "Bearer new-token"


# ─── 狀態碼 → 例外 ───────────────────────────────────────────────────────────

class TestErrorMapping:

    @pytest.mark.parametrize("status,exc", [
        (401, AuthError),
        (403, AuthError),
        (404, NotFoundError),
        (409, ConflictError),
        (422, ValidationError),
        (500, GitHubAPIError),
    ])
    def test_status_maps_to_exception(self, service, fake_session, status, exc):
        fake_session.add("GET", "", {"message": "boom"}, status=status)
        with pytest.raises(exc) as info:
            service.get_repo()
        assert info.value.status == status
        assert info.value.message == "boom"

    def test_pull_request_exists_is_validation_subclass(self, service, fake_session):
        fake_session.add("POST", "/pulls", {
            "message": "Validation Failed",
            "errors": [{"message": "A pull request already exists for acme:feature/x."}],
        }, status=422)
        with pytest.raises(PullRequestExistsError) as info:
            service.create_pull_request("t", "b", "feature/x", "main")
        assert "already exists" in info.value.message
        assert isinstance(info.value, ValidationError)

    def test_non_fast_forward_is_conflict(self, service, fake_session):
        fake_session.add("PATCH", "/git/refs/heads/main", {"message": "Update is not a fast forward"}, status=422)
        with pytest.raises(ConflictError):
            service.update_ref("main", "def456", force=False)

    def test_missing_branch_ref(self, service):
        with pytest.raises(BranchNotFoundError) as info:
            service.get_branch_ref("feature/x")
        assert info.value.branch == "feature/x"
        assert isinstance(info.value, NotFoundError)

    def test_transport_failure_is_network_error(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        svc = GitHubService("t", "acme", "tokens", session=session)
        with pytest.raises(NetworkError):
            svc.get_repo()

    def test_timeout_is_network_error(self):
        session = MagicMock()
        session.request.side_effect = requests.Timeout()
        svc = GitHubService("t", "acme", "tokens", session=session)
        with pytest.raises(NetworkError, match="timed out"):
            svc.list_branches()

    def test_unexpected_body_fails_validation(self, service, fake_session):
        fake_session.add("GET", "/git/refs/heads/main", {"ref": "refs/heads/main"})
        with pytest.raises(GitHubAPIError, match="validation failed"):
            service.get_branch_ref("main")

    def test_non_json_error_body_uses_reason(self, service, fake_session):
        fake_session.routes[("GET", "")] = [FakeResponse(502, None, reason="Bad Gateway")]
        with pytest.raises(GitHubAPIError) as info:
            service.get_repo()
        assert info.value.message == "Bad Gateway"


# ─── 讀取 ────────────────────────────────────────────────────────────────────

class TestReads:

    def test_file_content_base64_decoded(self, service, fake_session):
        text = '{"spacing": {}}\n'
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        fake_session.add("GET", "/contents/variables.json", {
            "path": "variables.json", "sha": "f1", "content": encoded, "encoding": "base64",
        })
        assert service.get_file_content("variables.json", "main") == text
        assert fake_session.calls[-1]["params"] == {"ref": "main"}

    def test_missing_file_returns_none(self, service):
        assert service.get_file_content("variables.json", "main") is None

    def test_list_branches_paginates(self, service, fake_session):
        first = [branch(f"b{i}") for i in range(100)]
        fake_session.add("GET", "/branches", first)
        fake_session.add("GET", "/branches", [branch("last")])
        names = service.list_branches()
        assert len(names) == 101
        assert names[-1] == "last"
        assert [c["params"]["page"] for c in fake_session.calls] == [1, 2]

    def test_get_branch(self, service, fake_session):
        fake_session.add("GET", "/branches/main", branch("main", "abc123"))
        result = service.get_branch("main")
        assert result.commit.sha == "abc123"

    def test_list_pull_requests_filters(self, service, fake_session):
        fake_session.add("GET", "/pulls", [])
        assert service.list_pull_requests("feature/x", "main") == []
        assert fake_session.calls[-1]["params"] == {
            "head": "acme:feature/x", "base": "main", "state": "open",
        }


# ─── 寫入 payload ────────────────────────────────────────────────────────────

class TestWrites:

    def test_blob_payload(self, service, fake_session):
        fake_session.add("POST", "/git/blobs", {"sha": "blob1"})
        assert service.create_blob("{}").sha == "blob1"
        assert fake_session.calls[-1]["json"] == {"content": "{}", "encoding": "utf-8"}

    def test_tree_payload(self, service, fake_session):
        fake_session.add("POST", "/git/trees", {"sha": "tree1"})
        service.create_tree("abc123", "tokens/variables.json", "blob1")
        assert fake_session.calls[-1]["json"] == {
            "base_tree": "abc123",
            "tree": [{"path": "tokens/variables.json", "mode": "100644", "type": "blob", "sha": "blob1"}],
        }

    def test_commit_payload_single_parent(self, service, fake_session):
        fake_session.add("POST", "/git/commits", {"sha": "c1", "tree": {"sha": "tree1"}})
        service.create_commit("msg", "tree1", "abc123")
        assert fake_session.calls[-1]["json"] == {"message": "msg", "tree": "tree1", "parents": ["abc123"]}

    def test_create_ref_payload(self, service, fake_session):
        fake_session.add("POST", "/git/refs", {"ref": "refs/heads/feature/x", "object": {"sha": "abc123"}})
        service.create_ref("feature/x", "abc123")
        assert fake_session.calls[-1]["json"] == {"ref": "refs/heads/feature/x", "sha": "abc123"}


# ─── URL 跳脫與非 JSON 回應 ──────────────────────────────────────────────────

class RecordingAdapter(requests.adapters.BaseAdapter):
    """記錄實際送出的 path，回傳固定 JSON。"""

    def __init__(self, data):
        super().__init__()
        self.data = data
        self.paths = []

    def send(self, request, **kwargs):
        self.paths.append(request.path_url.split("?")[0])
        resp = requests.models.Response()
        resp.status_code = 200
        resp._content = json.dumps(self.data).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
        resp.url = request.url
        resp.request = request
        return resp

    def close(self):
        pass


def recording_service(data):
    adapter = RecordingAdapter(data)
    session = requests.Session()
    session.mount("https://", adapter)
    return GitHubService("ghp_test", "acme", "tokens", session=session), adapter


class TestPathEscaping:

    def test_branch_with_hash_is_escaped(self):
        svc, adapter = recording_service({"ref": "refs/heads/feature/#12-tokens", "object": {"sha": "abc123"}})
        assert svc.get_branch_ref("feature/#12-tokens").object.sha == "abc123"
        assert adapter.paths == ["/repos/acme/tokens/git/refs/heads/feature/%2312-tokens"]

    def test_update_ref_escapes_branch(self):
        svc, adapter = recording_service({"ref": "refs/heads/a?b", "object": {"sha": "def456"}})
        svc.update_ref("a?b", "def456")
        assert adapter.paths == ["/repos/acme/tokens/git/refs/heads/a%3Fb"]

    def test_file_path_escaped_but_slashes_kept(self):
        svc, adapter = recording_service({"path": "x", "sha": "f1", "content": "", "encoding": "base64"})
        svc.get_file_content("design tokens/#main.json", "main")
        assert adapter.paths == ["/repos/acme/tokens/contents/design%20tokens/%23main.json"]


class TestInvalidJSON:

    def test_non_json_success_body_is_api_error(self, service, fake_session):
        fake_session.routes[("POST", "/git/blobs")] = [FakeResponse(200, text="<html>proxy</html>")]
        with pytest.raises(GitHubAPIError) as info:
            service.create_blob("{}")
        assert info.value.message == "Invalid JSON response"
        assert info.value.status == 200
