"""Exception classes for variable export and GitHub sync.

- SyncError: base class for everything raised by this package
- APIError and its status-specific subclasses (401/403, 404, 409, 422)
- GitHubAPIError / FigmaAPIError: other error statuses from either API
- NetworkError: transport failure or timeout talking to GitHub
- CommitStepError: a commit pipeline step failed (keeps the step number)
- AliasResolutionError / CyclicAliasError: alias chain could not be resolved
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for figma-git-sync."""

    pass


class APIError(SyncError):
    """A remote API answered with an error status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class GitHubAPIError(APIError):
    """GitHub answered with an error status (or an unexpected body)."""

    pass


class FigmaAPIError(APIError):
    """Figma REST API answered with an error status."""

    pass


class AuthError(APIError):
    """Token missing, invalid, or lacking scope (401/403)."""

    pass


class NotFoundError(APIError):
    """Repository, branch, ref or file does not exist (404)."""

    pass


class BranchNotFoundError(NotFoundError):
    """The requested branch ref does not exist."""

    def __init__(self, branch: str, message: str = "", status: Optional[int] = 404):
        super().__init__(message or f"Branch not found: {branch}", status)
        self.branch = branch


class ValidationError(APIError):
    """GitHub rejected the payload (422)."""

    pass


class PullRequestExistsError(ValidationError):
    """GitHub refused to create a PR because one is already open for head/base."""

    pass


class ConflictError(APIError):
    """Ref update raced with another writer (non fast-forward or 409)."""

    pass


class NetworkError(SyncError):
    """Transport failure or timeout."""

    pass


class CommitStepError(SyncError):
    """A step of the commit pipeline failed; the whole commit is aborted."""

    def __init__(self, step: int, step_name: str, cause: Exception, total: int = 5):
        detail = getattr(cause, "message", None) or str(cause)
        super().__init__(f"[step {step}/{total} {step_name}] {detail}")
        self.step = step
        self.step_name = step_name
        self.cause = cause
        self.status = getattr(cause, "status", None)


class AliasResolutionError(SyncError):
    """Alias points at a variable id that no longer exists."""

    def __init__(self, target_id: str, chain: Optional[list] = None):
        super().__init__(f"Alias target not found: {target_id}")
        self.target_id = target_id
        self.chain = list(chain or [])


class CyclicAliasError(AliasResolutionError):
    """Alias chain loops back on a variable already visited."""

    def __init__(self, target_id: str, chain: Optional[list] = None):
        super().__init__(target_id, chain)
        loop = " -> ".join(self.chain + [target_id])
        self.args = (f"Cyclic alias chain: {loop}",)
