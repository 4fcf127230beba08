"""figma-git-sync.config.json 載入、欄位驗證與環境變數合併."""

import json
import os
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = "figma-git-sync.config.json"

# 已知有效的頂層欄位
_KNOWN_TOP_KEYS = {"github", "figma", "commit", "export"}

# 各區塊已知欄位（用於拼字提示）
_KNOWN_SECTION_KEYS = {
    "github": {"token", "organization", "repository", "apiUrl", "label", "refPolicy"},
    "figma": {"personalAccessToken", "fileKey"},
    "commit": {"branch", "baseBranch", "message", "filename"},
    "export": {"outputDir", "source"},
}

_VALID_REF_POLICIES = {"force", "fast-forward"}


def _warn(msg: str) -> None:
    print(f"   ⚠️  [config] {msg}")


def validate_config(cfg: dict) -> None:
    """檢查拼字、refPolicy 與 token 放置位置；只印出警告，不拋例外。"""
    if not cfg:
        return

    # 頂層未知欄位
    for key in cfg:
        if key not in _KNOWN_TOP_KEYS:
            known = ", ".join(sorted(_KNOWN_TOP_KEYS))
            _warn(f"未知頂層欄位 '{key}'（已知欄位：{known}）")

    # 各區塊欄位
    for section, known_keys in _KNOWN_SECTION_KEYS.items():
        section_cfg = cfg.get(section, {})
        if not isinstance(section_cfg, dict):
            _warn(f"'{section}' 應為物件，目前是 {type(section_cfg).__name__}")
            continue
        for key in section_cfg:
            if key not in known_keys:
                known = ", ".join(sorted(known_keys))
                _warn(f"[{section}] 未知欄位 '{key}'（已知欄位：{known}）")

    # github.refPolicy 值驗證
    policy = (cfg.get("github") or {}).get("refPolicy")
    if policy and policy not in _VALID_REF_POLICIES:
        valid = ", ".join(sorted(_VALID_REF_POLICIES))
        _warn(f"github.refPolicy '{policy}' 不在已知值中（{valid}），將使用 force")

    # token 寫在設定檔裡容易被 commit 出去
    if (cfg.get("github") or {}).get("token"):
        _warn("github.token 寫在設定檔中，建議改用 GITHUB_TOKEN 環境變數")

    filename = (cfg.get("commit") or {}).get("filename")
    if filename and not str(filename).endswith(".json"):
        _warn(f"commit.filename '{filename}' 不是 .json 檔")


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """讀取設定檔；檔案不存在時回傳空 dict（全部使用預設值與環境變數）。"""
    path = Path(config_path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        cfg: Any = json.load(f)
    if not isinstance(cfg, dict):
        print(f"   ⚠️  [config] '{config_path}' 格式錯誤，應為 JSON 物件，回傳空設定。")
        return {}
    validate_config(cfg)
    return cfg


def resolve_github_settings(cfg: dict) -> dict:
    """合併設定檔與環境變數（GITHUB_TOKEN / FIGMA_TOKEN），補上預設值。"""
    github = cfg.get("github") or {}
    figma = cfg.get("figma") or {}
    commit = cfg.get("commit") or {}
    policy = github.get("refPolicy") or "force"
    if policy not in _VALID_REF_POLICIES:
        policy = "force"
    return {
        "token": github.get("token") or os.environ.get("GITHUB_TOKEN", ""),
        "organization": github.get("organization", ""),
        "repository": github.get("repository", ""),
        "api_url": github.get("apiUrl") or "https://api.github.com",
        "label": github.get("label"),
        "ref_policy": policy,
        "figma_token": figma.get("personalAccessToken") or os.environ.get("FIGMA_TOKEN", ""),
        "file_key": figma.get("fileKey"),
        "branch": commit.get("branch"),
        "base_branch": commit.get("baseBranch") or "main",
        "message": commit.get("message") or "",
        "filename": commit.get("filename") or "variables.json",
        "output_dir": (cfg.get("export") or {}).get("outputDir") or ".",
        "source": (cfg.get("export") or {}).get("source"),
    }
