"""GitHub API response schemas (lenient: unknown fields are kept, most fields optional)."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="allow")


class GitObject(_Lenient):
    sha: str
    type: Optional[str] = None
    url: Optional[str] = None


class BranchRef(_Lenient):
    ref: str
    url: Optional[str] = None
    object: GitObject


class BranchCommit(_Lenient):
    sha: str
    url: Optional[str] = None


class Branch(_Lenient):
    name: str
    commit: BranchCommit
    protected: bool = False


class Repo(_Lenient):
    full_name: str
    description: Optional[str] = None
    default_branch: str = "main"
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    language: Optional[str] = None
    visibility: Optional[str] = None
    updated_at: Optional[str] = None


class Blob(_Lenient):
    sha: str
    url: Optional[str] = None
    size: Optional[int] = None


class TreeEntry(_Lenient):
    path: str
    mode: str
    type: str
    sha: Optional[str] = None


class Tree(_Lenient):
    sha: str
    url: Optional[str] = None
    tree: List[TreeEntry] = []


class CommitTree(_Lenient):
    sha: str
    url: Optional[str] = None


class Commit(_Lenient):
    sha: str
    url: Optional[str] = None
    html_url: Optional[str] = None
    message: str = ""
    tree: CommitTree
    parents: List[GitObject] = []


class PullRequestRef(_Lenient):
    ref: str
    label: Optional[str] = None
    sha: Optional[str] = None


class PullRequest(_Lenient):
    number: int
    html_url: str
    title: str
    state: str = "open"
    url: Optional[str] = None
    body: Optional[str] = None
    head: PullRequestRef
    base: PullRequestRef


class FileContent(_Lenient):
    path: str
    sha: str
    content: str = ""
    encoding: str = "base64"
