"""
同步流程 — 匯出 → 與 branch 比對 → commit → 找 / 開 PR

SyncSession 把 VariableSource、GitHubService 與各元件串起來，
CLI 與 plugin bridge 都透過它操作。
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from .differ import TokenDiffer, summarize_changes
from .errors import BranchNotFoundError, CommitStepError, SyncError
from .exporter import DEFAULT_FILENAME, TokenExporter
from .github import GitHubService
from .host import VariableSource
from .models import CommitData, CommitResult, ExistingPR
from .normalizer import format_collections
from .pipeline import COMMIT_STEPS, GitCommitPipeline, RefUpdatePolicy
from .pr import PRReconciler
from .resource import EpochResource, ResourceState


@dataclass(frozen=True)
class RepoInfo:
    full_name: str
    description: Optional[str]
    default_branch: str
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    language: Optional[str] = None
    visibility: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class BranchInfo:
    name: str
    sha: str
    url: Optional[str] = None
    protected: bool = False


class SyncSession:

    def __init__(
        self,
        service: GitHubService,
        source: VariableSource,
        filename: str = DEFAULT_FILENAME,
        label: Optional[str] = None,
        ref_policy: RefUpdatePolicy = RefUpdatePolicy.FORCE,
    ):
        self.service = service
        self.source = source
        self.filename = filename
        self.label = label
        self.exporter = TokenExporter()
        self.differ = TokenDiffer()
        self.pipeline = GitCommitPipeline(service, policy=ref_policy)
        self.reconciler = PRReconciler(service)
        self.branches = EpochResource("branches")
        self.diff_preview = EpochResource("diff")

    # ─── export / diff ──────────────────────────────────────────────────────

    def build_export(self) -> tuple:
        """回傳 (formatted collections, export JSON 字串)."""
        collections = format_collections(self.source.get_variable_graph())
        tree = self.exporter.export_all(collections, self.source.get_styles())
        return collections, self.exporter.to_json(tree)

    def preview_diff(self, branch: str, content: Optional[str] = None) -> tuple:
        """比對 branch 上目前的檔案與本機匯出，回傳 (changes, diff 文字)."""
        if content is None:
            _, content = self.build_export()
        current = self.service.get_file_content(self.filename, branch)
        changes = self.differ.diff(current or "{}", content)
        return changes, self.differ.render(changes)

    # ─── commit ─────────────────────────────────────────────────────────────

    def ensure_branch(self, branch: str, base_branch: str) -> bool:
        """branch 不存在時從 base_branch 建立；回傳是否新建."""
        try:
            self.service.get_branch_ref(branch)
            return False
        except BranchNotFoundError:
            base = self.service.get_branch_ref(base_branch)
            self.service.create_ref(branch, base.object.sha)
            print(f"   🌱 Created branch '{branch}' from '{base_branch}'")
            return True

    def commit(self, data: CommitData) -> CommitResult:
        """執行一次 5 步驟 commit；branch 與 base 不同時先確保 branch 存在."""
        content = data.content
        if not content:
            _, content = self.build_export()
        filename = data.filename or self.filename
        if data.base_branch and data.base_branch != data.branch:
            try:
                self.ensure_branch(data.branch, data.base_branch)
            except SyncError as e:
                raise CommitStepError(1, COMMIT_STEPS[0], e, total=len(COMMIT_STEPS)) from e
        return self.pipeline.commit(data.branch, data.message, content, filename)

    # ─── pull requests ──────────────────────────────────────────────────────

    def find_existing_pr(self, branch: str, base_branch: str) -> Optional[ExistingPR]:
        return self.reconciler.find(branch, base_branch)

    def default_pr_body(self, base_branch: str, content: Optional[str] = None) -> str:
        changes, _ = self.preview_diff(base_branch, content)
        summary = summarize_changes(changes)
        return (
            f"Update `{self.filename}` from Figma variables.\n\n"
            f"- {summary['added']} added\n"
            f"- {summary['changed']} changed\n"
            f"- {summary['removed']} removed\n"
        )

    def open_pull_request(self, data: CommitData, title: str = "", body: Optional[str] = None) -> tuple:
        """回傳 (ExistingPR, created)；已有 open PR 時直接回傳它."""
        existing = self.reconciler.find(data.branch, data.base_branch)
        if existing is not None:
            return existing, False
        if body is None:
            body = self.default_pr_body(data.base_branch, data.content or None)
        labels = [self.label] if self.label else None
        pr = self.reconciler.create(
            head=data.branch,
            base=data.base_branch,
            title=title or data.message or f"Update {self.filename}",
            body=body,
            labels=labels,
        )
        return pr, True

    # ─── repo metadata（並行） ───────────────────────────────────────────────

    async def fetch_repo_info(self, branch: str) -> tuple:
        repo, br = await asyncio.gather(
            asyncio.to_thread(self.service.get_repo),
            asyncio.to_thread(self.service.get_branch, branch),
        )
        repo_info = RepoInfo(
            full_name=repo.full_name,
            description=repo.description,
            default_branch=repo.default_branch,
            stargazers_count=repo.stargazers_count,
            forks_count=repo.forks_count,
            open_issues_count=repo.open_issues_count,
            language=repo.language,
            visibility=repo.visibility,
            updated_at=repo.updated_at,
        )
        branch_info = BranchInfo(
            name=br.name, sha=br.commit.sha, url=br.commit.url, protected=br.protected,
        )
        return repo_info, branch_info

    # ─── epoch 保護的重抓 ────────────────────────────────────────────────────

    def _settings_key(self) -> tuple:
        return (self.service.organization, self.service.repository, self.service.token)

    async def refresh_branches(self, force: bool = False) -> ResourceState:
        key = self._settings_key()
        if not force and not self.branches.needs_refresh(key):
            return self.branches.state
        return await self.branches.load(key, lambda: asyncio.to_thread(self.service.list_branches))

    async def refresh_diff(self, branch: str, content: Optional[str] = None) -> ResourceState:
        return await self.diff_preview.load(
            (branch,), lambda: asyncio.to_thread(self.preview_diff, branch, content),
        )
