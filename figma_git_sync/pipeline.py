"""
Commit Pipeline — 以 Git Data API 讓 branch 前進一個 commit

    [1/5] get_branch_ref  → 目前 tip SHA
    [2/5] create_blob     → 新內容 blob
    [3/5] create_tree     → base_tree=tip，只替換一個 path
    [4/5] create_commit   → 單一 parent
    [5/5] update_ref      → 移動 branch 指標

每一步依賴前一步的 SHA，必須依序執行。任一步失敗整個 commit 中止，
CommitStepError 會帶著步驟編號與 API 原始錯誤訊息。

預設 RefUpdatePolicy.FORCE：第 1 步與第 5 步之間若有別人 push，
對方的 commit 會被覆蓋（last writer wins）。FAST_FORWARD 則交給 GitHub
拒絕非 fast-forward 更新，以 ConflictError 回報。
"""

from enum import Enum
from typing import Callable, Optional

from .errors import CommitStepError, SyncError
from .github import GitHubService
from .models import CommitResult

COMMIT_STEPS = (
    "get_branch_ref",
    "create_blob",
    "create_tree",
    "create_commit",
    "update_ref",
)


class RefUpdatePolicy(str, Enum):
    FORCE = "force"
    FAST_FORWARD = "fast-forward"


class GitCommitPipeline:

    def __init__(
        self,
        service: GitHubService,
        policy: RefUpdatePolicy = RefUpdatePolicy.FORCE,
        on_step: Optional[Callable[[int, str], None]] = None,
    ):
        self.service = service
        self.policy = RefUpdatePolicy(policy)
        self.on_step = on_step

    def _run(self, step: int, func, *args, **kwargs):
        name = COMMIT_STEPS[step - 1]
        if self.on_step:
            self.on_step(step, name)
        try:
            return func(*args, **kwargs)
        except SyncError as e:
            raise CommitStepError(step, name, e, total=len(COMMIT_STEPS)) from e

    def commit(self, branch: str, message: str, content: str, path: str = "variables.json") -> CommitResult:
        message = message or f"Update {path}"

        ref = self._run(1, self.service.get_branch_ref, branch)
        parent_sha = ref.object.sha

        blob = self._run(2, self.service.create_blob, content)
        tree = self._run(3, self.service.create_tree, parent_sha, path, blob.sha)
        commit = self._run(4, self.service.create_commit, message, tree.sha, parent_sha)
        self._run(
            5, self.service.update_ref, branch, commit.sha,
            force=self.policy is RefUpdatePolicy.FORCE,
        )

        return CommitResult(
            sha=commit.sha,
            url=commit.html_url or commit.url or "",
            message=commit.message or message,
            tree_sha=tree.sha,
            parent_sha=parent_sha,
        )
