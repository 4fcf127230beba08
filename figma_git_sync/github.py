"""
GitHub REST / Git Data API 封裝

所有請求帶 `Authorization: Bearer <token>` 與 `Accept: application/vnd.github.v3+json`。
錯誤狀態碼對應到 errors.py 的例外，並保留 API 回傳的原始 message。
"""

import base64
from typing import Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError as SchemaError

from . import schemas
from .errors import (
    AuthError,
    BranchNotFoundError,
    ConflictError,
    GitHubAPIError,
    NetworkError,
    NotFoundError,
    PullRequestExistsError,
    ValidationError,
)

DEFAULT_API_URL = "https://api.github.com"


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.reason or f"HTTP {resp.status_code}"
    message = data.get("message") if isinstance(data, dict) else None
    # 422 的細節通常在 errors[].message
    for err in (data.get("errors") or []) if isinstance(data, dict) else []:
        if isinstance(err, dict) and err.get("message"):
            message = f"{message}: {err['message']}" if message else err["message"]
            break
    return message or resp.reason or f"HTTP {resp.status_code}"


def raise_for_status(resp: requests.Response) -> None:
    status = resp.status_code
    if status < 400:
        return
    message = _error_message(resp)
    if status in (401, 403):
        raise AuthError(message, status)
    if status == 404:
        raise NotFoundError(message, status)
    if status == 409:
        raise ConflictError(message, status)
    if status == 422:
        lowered = message.lower()
        if "pull request already exists" in lowered:
            raise PullRequestExistsError(message, status)
        if "not a fast forward" in lowered:
            raise ConflictError(message, status)
        raise ValidationError(message, status)
    raise GitHubAPIError(message, status)


class GitHubService:
    """單一 repository 的 GitHub API client.

    organization / repository / token 可在建立後修改；每次請求都以目前的值
    組出 URL 與 Authorization header。
    """

    def __init__(
        self,
        token: str,
        organization: str,
        repository: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30,
        debug: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.organization = organization
        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.debug = debug
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return f"{self.api_url}/repos/{self.organization}/{self.repository}"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, endpoint: str, schema=None, **kwargs):
        url = endpoint if endpoint.startswith("http") else f"{self.base_url}{endpoint}"
        if self.debug:
            print(f"   🔎 {method} {url}")
        try:
            resp = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise NetworkError(f"GitHub request timed out: {method} {url}") from e
        except requests.RequestException as e:
            raise NetworkError(f"GitHub unreachable: {e}") from e
        if self.debug:
            print(f"   🔎 -> {resp.status_code}")
        raise_for_status(resp)
        try:
            data = resp.json() if resp.content else {}
        except ValueError as e:
            # proxy / HTML 錯誤頁以 2xx 回傳時
            raise GitHubAPIError("Invalid JSON response", resp.status_code) from e
        if schema is None:
            return data
        try:
            if isinstance(schema, list):
                return [schema[0].model_validate(item) for item in data]
            return schema.model_validate(data)
        except (SchemaError, TypeError) as e:
            if self.debug:
                print(f"   🔎 validation errors: {e}")
            raise GitHubAPIError("API response validation failed", resp.status_code) from e

    # ─── repository / branches ──────────────────────────────────────────────

    def get_repo(self) -> schemas.Repo:
        return self._request("GET", "", schemas.Repo)

    def get_branch(self, branch: str) -> schemas.Branch:
        try:
            return self._request("GET", f"/branches/{quote(branch, safe='/')}", schemas.Branch)
        except NotFoundError as e:
            raise BranchNotFoundError(branch, e.message, e.status) from e

    def list_branches(self, per_page: int = 100) -> list:
        names = []
        page = 1
        while True:
            batch = self._request(
                "GET", "/branches", [schemas.Branch],
                params={"per_page": per_page, "page": page},
            )
            names.extend(b.name for b in batch)
            if len(batch) < per_page:
                return names
            page += 1

    # ─── git data ───────────────────────────────────────────────────────────

    def get_branch_ref(self, branch: str) -> schemas.BranchRef:
        try:
            return self._request("GET", f"/git/refs/heads/{quote(branch, safe='/')}", schemas.BranchRef)
        except NotFoundError as e:
            raise BranchNotFoundError(branch, e.message, e.status) from e

    def create_ref(self, branch: str, sha: str) -> schemas.BranchRef:
        return self._request(
            "POST", "/git/refs", schemas.BranchRef,
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )

    def create_blob(self, content: str) -> schemas.Blob:
        return self._request(
            "POST", "/git/blobs", schemas.Blob,
            json={"content": content, "encoding": "utf-8"},
        )

    def create_tree(self, base_tree: str, path: str, blob_sha: str) -> schemas.Tree:
        return self._request(
            "POST", "/git/trees", schemas.Tree,
            json={
                "base_tree": base_tree,
                "tree": [{"path": path, "mode": "100644", "type": "blob", "sha": blob_sha}],
            },
        )

    def create_commit(self, message: str, tree_sha: str, parent_sha: str) -> schemas.Commit:
        return self._request(
            "POST", "/git/commits", schemas.Commit,
            json={"message": message, "tree": tree_sha, "parents": [parent_sha]},
        )

    def update_ref(self, branch: str, sha: str, force: bool = True) -> schemas.BranchRef:
        return self._request(
            "PATCH", f"/git/refs/heads/{quote(branch, safe='/')}", schemas.BranchRef,
            json={"sha": sha, "force": force},
        )

    def get_file_content(self, path: str, ref: str) -> Optional[str]:
        """讀取 branch 上的檔案（base64 解碼）；檔案不存在回傳 None."""
        try:
            data = self._request("GET", f"/contents/{quote(path, safe='/')}", schemas.FileContent, params={"ref": ref})
        except NotFoundError:
            return None
        if data.encoding != "base64":
            return data.content
        return base64.b64decode(data.content).decode("utf-8")

    # ─── pull requests ──────────────────────────────────────────────────────

    def list_pull_requests(self, head: str, base: str, state: str = "open") -> list:
        return self._request(
            "GET", "/pulls", [schemas.PullRequest],
            params={"head": f"{self.organization}:{head}", "base": base, "state": state},
        )

    def create_pull_request(self, title: str, body: str, head: str, base: str, draft: bool = False) -> schemas.PullRequest:
        return self._request(
            "POST", "/pulls", schemas.PullRequest,
            json={"title": title, "body": body, "head": head, "base": base, "draft": draft},
        )

    def add_labels(self, number: int, labels: list) -> list:
        return self._request("POST", f"/issues/{number}/labels", json={"labels": list(labels)})
