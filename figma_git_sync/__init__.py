"""
figma-git-sync — Figma 變數 → GitHub design tokens（Python 管線）

解析 Figma 變數圖（mode 展開、別名追蹤）→ design tokens JSON →
與 branch 上的版本比對 → 透過 Git Data API commit，並對帳既有 PR。
"""

__version__ = "0.1.0"

from .models import (
    ABSENT,
    AliasRef,
    CommitData,
    CommitResult,
    DiffChange,
    ExistingPR,
    ModeValue,
    Variable,
    VariableCollection,
)
from .errors import (
    AliasResolutionError,
    AuthError,
    BranchNotFoundError,
    CommitStepError,
    ConflictError,
    CyclicAliasError,
    FigmaAPIError,
    GitHubAPIError,
    NetworkError,
    NotFoundError,
    PullRequestExistsError,
    SyncError,
    ValidationError,
)
from .formatter import format_value, rgba_to_hex, hex_to_rgba
from .figma_reader import (
    FigmaAPIClient,
    FigmaVariableSource,
    JsonFileVariableSource,
    VariableGraph,
    parse_local_variables,
)
from .resolver import AliasResolver
from .normalizer import VariableNormalizer, format_collections
from .exporter import TokenExporter, export_json, export_tokens
from .differ import TokenDiffer, find_json_diff, format_json_diff
from .github import GitHubService
from .pipeline import GitCommitPipeline, RefUpdatePolicy
from .pr import PRReconciler
from .resource import EpochResource, ResourceStatus
from .host import PluginBridge, QueueChannel
from .sync import SyncSession
from .config import load_config, validate_config

__all__ = [
    "__version__",
    "ABSENT",
    "AliasRef",
    "CommitData",
    "CommitResult",
    "DiffChange",
    "ExistingPR",
    "ModeValue",
    "Variable",
    "VariableCollection",
    "AliasResolutionError",
    "AuthError",
    "BranchNotFoundError",
    "CommitStepError",
    "ConflictError",
    "CyclicAliasError",
    "FigmaAPIError",
    "GitHubAPIError",
    "NetworkError",
    "NotFoundError",
    "PullRequestExistsError",
    "SyncError",
    "ValidationError",
    "format_value",
    "rgba_to_hex",
    "hex_to_rgba",
    "FigmaAPIClient",
    "FigmaVariableSource",
    "JsonFileVariableSource",
    "VariableGraph",
    "parse_local_variables",
    "AliasResolver",
    "VariableNormalizer",
    "format_collections",
    "TokenExporter",
    "export_json",
    "export_tokens",
    "TokenDiffer",
    "find_json_diff",
    "format_json_diff",
    "GitHubService",
    "GitCommitPipeline",
    "RefUpdatePolicy",
    "PRReconciler",
    "EpochResource",
    "ResourceStatus",
    "PluginBridge",
    "QueueChannel",
    "SyncSession",
    "load_config",
    "validate_config",
]
