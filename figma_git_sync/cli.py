#!/usr/bin/env python3
"""
figma-git-sync CLI — Figma 變數 → GitHub design tokens

  figma-git-sync export --source variables.dump.json       # 產生 variables.json
  figma-git-sync diff --branch main                        # 與 branch 比對
  figma-git-sync commit --branch figma/tokens --base main  # 送出 commit
  figma-git-sync pr --branch figma/tokens --create         # 找 / 開 PR
  figma-git-sync watch --source variables.dump.json        # 檔案變更時重新比對
"""

import argparse
import asyncio
import os
import threading
import time
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from . import __version__
from .config import DEFAULT_CONFIG_PATH, load_config, resolve_github_settings
from .differ import summarize_changes
from .errors import SyncError
from .exporter import export_json
from .figma_reader import FigmaAPIClient, FigmaVariableSource, JsonFileVariableSource
from .github import GitHubService
from .models import CommitData
from .normalizer import format_collections
from .pipeline import RefUpdatePolicy
from .resource import ResourceStatus
from .sync import SyncSession


def _make_source(args, settings: dict):
    source_path = getattr(args, "source", None) or settings.get("source")
    if source_path:
        return JsonFileVariableSource(source_path)
    file_key = getattr(args, "file_key", None) or settings.get("file_key")
    if file_key:
        if not settings.get("figma_token"):
            raise SyncError("請設定 FIGMA_TOKEN 環境變數，或在設定檔的 figma.personalAccessToken 設定。")
        return FigmaVariableSource(FigmaAPIClient(settings["figma_token"]), file_key)
    raise SyncError("請使用 --source 指定變數 dump，或以 --file-key 從 Figma 讀取。")


def _make_service(settings: dict, debug: bool = False) -> GitHubService:
    if not settings.get("token"):
        raise SyncError("請設定 GITHUB_TOKEN 環境變數，或在設定檔的 github.token 設定。")
    if not settings.get("organization") or not settings.get("repository"):
        raise SyncError("請在設定檔設定 github.organization 與 github.repository。")
    return GitHubService(
        token=settings["token"],
        organization=settings["organization"],
        repository=settings["repository"],
        api_url=settings["api_url"],
        debug=debug,
    )


def _make_session(args, settings: dict, need_source: bool = True) -> SyncSession:
    service = _make_service(settings, debug=getattr(args, "debug", False))
    source = _make_source(args, settings) if need_source else None
    policy = settings["ref_policy"]
    if getattr(args, "fast_forward", False):
        policy = RefUpdatePolicy.FAST_FORWARD
    return SyncSession(
        service,
        source,
        filename=getattr(args, "filename", None) or settings["filename"],
        label=settings.get("label"),
        ref_policy=RefUpdatePolicy(policy),
    )


def cmd_export(args, settings: dict) -> int:
    """Export: 讀取變數 → 寫出 design tokens JSON."""
    source = _make_source(args, settings)
    collections = format_collections(source.get_variable_graph())
    content = export_json(collections, source.get_styles())
    output = args.output or os.path.join(settings["output_dir"], settings["filename"])
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        f.write(content)
    exported = [c for c in collections if not c.hidden]
    print(f"   ✅ Exported {len(exported)} collections to {output}")
    return 0


def cmd_diff(args, settings: dict) -> int:
    """Diff: 與 branch 上目前的檔案比對."""
    session = _make_session(args, settings)
    branch = args.branch or settings.get("base_branch")
    print(f"📥 Comparing with '{branch}'...")
    changes, text = session.preview_diff(branch)
    if not changes:
        print("   ✅ No changes.")
        return 0
    summary = summarize_changes(changes)
    print(f"   📝 {summary['total']} changes "
          f"(+{summary['added']} ~{summary['changed']} -{summary['removed']})\n")
    print(text)
    return 0


def cmd_commit(args, settings: dict) -> int:
    """Commit: 匯出並以 Git Data API commit 到 branch."""
    session = _make_session(args, settings)
    session.pipeline.on_step = lambda step, name: print(f"   [{step}/5] {name}...")
    branch = args.branch or settings.get("branch")
    if not branch:
        raise SyncError("請使用 --branch 或在設定檔的 commit.branch 指定 branch。")
    data = CommitData(
        branch=branch,
        base_branch=args.base or settings["base_branch"],
        message=args.message or settings["message"],
        filename=session.filename,
    )
    print(f"🚀 Committing {data.filename} to '{branch}'...")
    if session.pipeline.policy is RefUpdatePolicy.FORCE:
        print("   ℹ️  ref 以 force 更新：同時間其他人 push 的 commit 會被覆蓋（--fast-forward 可避免）。")
    result = session.commit(data)
    print(f"   ✅ Committed {result.sha[:7]}")
    if result.url:
        print(f"   🔗 {result.url}")

    existing = session.find_existing_pr(data.branch, data.base_branch)
    if existing:
        print(f"   📎 Open PR #{existing.number}: {existing.html_url}")
    elif data.branch != data.base_branch:
        print("   💡 使用 'figma-git-sync pr --create' 開啟 pull request。")
    return 0


def cmd_pr(args, settings: dict) -> int:
    """PR: 查詢 head/base 已開啟的 PR，--create 時沒有就建立."""
    session = _make_session(args, settings, need_source=args.create)
    data = CommitData(
        branch=args.branch or settings.get("branch") or "",
        base_branch=args.base or settings["base_branch"],
        message=args.title or settings["message"],
        filename=session.filename,
    )
    if not data.branch:
        raise SyncError("請使用 --branch 指定 head branch。")
    if not args.create:
        existing = session.find_existing_pr(data.branch, data.base_branch)
        if existing is None:
            print(f"   ℹ️  No open PR for {data.branch} → {data.base_branch}")
        else:
            print(f"   📎 PR #{existing.number} {existing.title}\n   🔗 {existing.html_url}")
        return 0
    pr, created = session.open_pull_request(data, title=args.title or "")
    verb = "Created" if created else "Found existing"
    print(f"   ✅ {verb} PR #{pr.number}: {pr.html_url}")
    return 0


def cmd_branches(args, settings: dict) -> int:
    session = _make_session(args, settings, need_source=False)
    state = asyncio.run(session.refresh_branches(force=True))
    if state.status is ResourceStatus.FAILED:
        raise state.error
    for name in state.data:
        print(f"   • {name}")
    return 0


_WATCHED_EXTENSIONS = (".json",)


class ChangeHandler(FileSystemEventHandler):
    """檔案變更事件處理器，帶 debounce 防抖。"""

    def __init__(self, callback, loop: asyncio.AbstractEventLoop, debounce: float = 1.0, target=None):
        self.callback = callback
        self.loop = loop
        self.last_trigger = 0.0
        self.debounce_seconds = debounce
        self.target = os.path.abspath(target) if target else None

    def on_modified(self, event):
        if event.is_directory:
            return
        if not event.src_path.endswith(_WATCHED_EXTENSIONS):
            return
        if self.target and os.path.abspath(event.src_path) != self.target:
            return
        current_time = time.time()
        if current_time - self.last_trigger < self.debounce_seconds:
            return
        self.last_trigger = current_time
        print(f"\n🔄 File changed: {event.src_path}")
        # 透過 threadsafe 把 coroutine 丟進 loop（loop 在獨立執行緒中 run_forever）
        asyncio.run_coroutine_threadsafe(self.callback(), self.loop)


def cmd_watch(args, settings: dict) -> int:
    """Watch: 監聽變數 dump，變更時重新比對 branch."""
    if not args.source:
        raise SyncError("watch 需要 --source 指定變數 dump 檔案。")
    session = _make_session(args, settings)
    branch = args.branch or settings["base_branch"]
    watch_dir = os.path.dirname(os.path.abspath(args.source))
    print(f"👀 Watching '{args.source}' (compare with '{branch}')...")
    print("   Press Ctrl+C to stop.")

    # 在獨立執行緒中運行 event loop，避免主執行緒與 coroutine_threadsafe 競爭
    loop = asyncio.new_event_loop()

    async def diff_task():
        state = await session.refresh_diff(branch)
        if state.status is ResourceStatus.FAILED:
            print(f"   ⚠️  Diff failed: {state.error}")
        elif state.status is ResourceStatus.READY:
            changes, text = state.data
            print(text if changes else "   ✅ No changes.")

    def run_loop():
        asyncio.set_event_loop(loop)
        loop.run_forever()

    loop_thread = threading.Thread(target=run_loop, daemon=True)
    loop_thread.start()

    # 初始比對一次（等待完成）
    future = asyncio.run_coroutine_threadsafe(diff_task(), loop)
    try:
        future.result(timeout=120)
    except Exception as e:
        print(f"   ⚠️  Initial diff failed: {e}")

    event_handler = ChangeHandler(diff_task, loop, debounce=args.debounce, target=args.source)
    observer = Observer()
    observer.schedule(event_handler, path=watch_dir, recursive=False)
    observer.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n👋 Stopping watch...")
        observer.stop()
    finally:
        observer.join()
        loop.call_soon_threadsafe(loop.stop)
    return 0


def _add_source_args(p):
    p.add_argument("--source", help="Variables dump JSON exported by the plugin")
    p.add_argument("--file-key", help="Figma file key (reads variables via REST API)")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="figma-git-sync: Figma variables → GitHub design tokens",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config path")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Print GitHub requests")
    sub = parser.add_subparsers(dest="command")

    export_p = sub.add_parser("export", help="Write design tokens JSON")
    _add_source_args(export_p)
    export_p.add_argument("--output", "-o", help="Output path (default: <outputDir>/<filename>)")

    diff_p = sub.add_parser("diff", help="Diff local export against a branch")
    _add_source_args(diff_p)
    diff_p.add_argument("--branch", help="Branch to compare with (default: baseBranch)")
    diff_p.add_argument("--filename", help="Tokens file path in the repository")

    commit_p = sub.add_parser("commit", help="Commit the export to a branch",
        epilog="Examples:\n  figma-git-sync commit --source dump.json --branch figma/tokens\n  figma-git-sync commit --file-key ABC123 --branch main --fast-forward",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    _add_source_args(commit_p)
    commit_p.add_argument("--branch", help="Target branch (created from --base if missing)")
    commit_p.add_argument("--base", help="Base branch (default: main)")
    commit_p.add_argument("--message", "-m", help="Commit message")
    commit_p.add_argument("--filename", help="Tokens file path in the repository")
    commit_p.add_argument("--fast-forward", action="store_true", help="Refuse to overwrite concurrent commits")

    pr_p = sub.add_parser("pr", help="Find or open the pull request for a branch")
    _add_source_args(pr_p)
    pr_p.add_argument("--branch", help="Head branch")
    pr_p.add_argument("--base", help="Base branch (default: main)")
    pr_p.add_argument("--title", help="PR title")
    pr_p.add_argument("--filename", help="Tokens file path in the repository")
    pr_p.add_argument("--create", action="store_true", help="Open a PR when none exists")

    sub.add_parser("branches", help="List repository branches")

    watch_p = sub.add_parser("watch", help="Re-diff when the variables dump changes")
    _add_source_args(watch_p)
    watch_p.add_argument("--branch", help="Branch to compare with (default: baseBranch)")
    watch_p.add_argument("--filename", help="Tokens file path in the repository")
    watch_p.add_argument("--debounce", type=float, default=1.0, help="Debounce seconds")

    args = parser.parse_args(argv)
    settings = resolve_github_settings(load_config(args.config))

    commands = {
        "export": cmd_export,
        "diff": cmd_diff,
        "commit": cmd_commit,
        "pr": cmd_pr,
        "branches": cmd_branches,
        "watch": cmd_watch,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 0
    try:
        return handler(args, settings)
    except SyncError as e:
        print(f"❌ {e}")
        return 1
    except (OSError, ValueError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
