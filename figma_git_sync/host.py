"""
Host 介面 — 取代 plugin runtime 的全域物件

VariableSource 提供原始變數圖，MessageChannel 傳遞 `{type, payload}` 訊息；
兩者都由外部注入，測試時可換成假的實作。
"""

from collections import deque
from typing import Any, Optional, Protocol

from .errors import SyncError
from .exporter import TokenExporter
from .figma_reader import VariableGraph
from .normalizer import format_collections


class VariableSource(Protocol):
    def get_variable_graph(self) -> VariableGraph: ...

    def get_styles(self) -> Any: ...


class MessageChannel(Protocol):
    def post(self, message: dict) -> None: ...

    def receive(self) -> Optional[dict]: ...


class QueueChannel:
    """記憶體內雙向 channel：inbox 給 bridge 讀，outbox 收 bridge 回覆."""

    def __init__(self):
        self.inbox: deque = deque()
        self.outbox: deque = deque()

    def send(self, message: dict) -> None:
        self.inbox.append(message)

    def receive(self) -> Optional[dict]:
        return self.inbox.popleft() if self.inbox else None

    def post(self, message: dict) -> None:
        self.outbox.append(message)

    def replies(self) -> list:
        out = list(self.outbox)
        self.outbox.clear()
        return out


class PluginBridge:
    """處理 host 送來的 get-variables / get-styles 訊息."""

    def __init__(self, source: VariableSource, channel: MessageChannel):
        self.source = source
        self.channel = channel
        self.exporter = TokenExporter()

    def handle(self, message: dict) -> dict:
        msg_type = message.get("type")
        try:
            if msg_type == "get-variables":
                collections = format_collections(self.source.get_variable_graph())
                reply = {
                    "type": "variables-loaded",
                    "variables": [c.to_dict() for c in collections],
                    "exportData": self.exporter.to_json(
                        self.exporter.export_all(collections, self.source.get_styles()),
                    ),
                }
            elif msg_type == "get-styles":
                reply = {"type": "styles-loaded", "styles": self.source.get_styles()}
            else:
                reply = {"type": "error", "message": f"Unknown message type: {msg_type}"}
        except (SyncError, OSError, ValueError) as e:
            reply = {"type": "error", "message": str(e)}
        self.channel.post(reply)
        return reply

    def pump(self) -> int:
        """處理 channel 中所有待處理訊息，回傳處理數量."""
        count = 0
        while True:
            message = self.channel.receive()
            if message is None:
                return count
            self.handle(message)
            count += 1
