"""
Pull Request 對帳 — 找出 head/base 已開啟的 PR，避免重複建立

查詢只是提示：查詢與建立之間別人仍可能開了 PR，
真正的去重由 GitHub 的 create PR 決定（PullRequestExistsError 會往上拋）。
"""

from typing import Optional

from .errors import SyncError
from .github import GitHubService
from .models import ExistingPR


def _warn(msg: str) -> None:
    print(f"   ⚠️  [pr] {msg}")


def to_existing_pr(pr) -> ExistingPR:
    return ExistingPR(number=pr.number, title=pr.title, html_url=pr.html_url, head=pr.head.ref)


class PRReconciler:

    def __init__(self, service: GitHubService):
        self.service = service

    def find(self, head: str, base: str) -> Optional[ExistingPR]:
        """回傳第一個符合的 open PR；查詢失敗視為「沒有」，不阻擋 commit 流程."""
        try:
            pulls = self.service.list_pull_requests(head, base, state="open")
        except SyncError as e:
            _warn(f"查詢 PR 失敗（{head} → {base}）：{e}")
            return None
        if not pulls:
            return None
        return to_existing_pr(pulls[0])

    def create(self, head: str, base: str, title: str, body: str = "", labels: Optional[list] = None) -> ExistingPR:
        pr = self.service.create_pull_request(title=title, body=body, head=head, base=base)
        if labels:
            try:
                self.service.add_labels(pr.number, labels)
            except SyncError as e:
                _warn(f"PR #{pr.number} 加上 label 失敗：{e}")
        return to_existing_pr(pr)

    def find_or_create(self, head: str, base: str, title: str, body: str = "", labels: Optional[list] = None) -> tuple:
        """回傳 (ExistingPR, created)."""
        existing = self.find(head, base)
        if existing is not None:
            return existing, False
        return self.create(head, base, title, body, labels), True
