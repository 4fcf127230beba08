"""
非同步資源狀態機 — Idle → Loading(epoch) → Ready(epoch, data) | Failed(epoch, error)

每次載入都取得遞增的 epoch；回應抵達時 epoch 已不是最新者直接丟棄，
避免較慢的舊請求覆蓋較新的結果（例如快速切換 branch 時的 diff 預覽）。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, Optional


class ResourceStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ResourceState:
    status: ResourceStatus = ResourceStatus.IDLE
    epoch: int = 0
    key: Optional[Hashable] = None
    data: Any = None
    error: Optional[BaseException] = None


class EpochResource:

    def __init__(self, name: str = "resource"):
        self.name = name
        self._epoch = 0
        self.state = ResourceState()

    @property
    def epoch(self) -> int:
        return self._epoch

    def needs_refresh(self, key: Hashable) -> bool:
        """識別 key（例如 (org, repo, token)）與上次載入不同時需要重抓."""
        return self.state.status is ResourceStatus.IDLE or self.state.key != key

    def begin(self, key: Hashable = None) -> int:
        self._epoch += 1
        self.state = ResourceState(
            status=ResourceStatus.LOADING,
            epoch=self._epoch,
            key=key,
            data=self.state.data,
        )
        return self._epoch

    def is_current(self, epoch: int) -> bool:
        return epoch == self._epoch

    def resolve(self, epoch: int, data: Any) -> bool:
        if not self.is_current(epoch):
            return False
        self.state = ResourceState(ResourceStatus.READY, epoch, self.state.key, data, None)
        return True

    def fail(self, epoch: int, error: BaseException) -> bool:
        if not self.is_current(epoch):
            return False
        self.state = ResourceState(ResourceStatus.FAILED, epoch, self.state.key, None, error)
        return True

    async def load(self, key: Hashable, fetch: Callable[[], Awaitable[Any]]) -> ResourceState:
        """抓取並回傳抓取結束當下的狀態（可能已被較新的請求取代）."""
        epoch = self.begin(key)
        try:
            data = await fetch()
        except Exception as e:
            self.fail(epoch, e)
        else:
            self.resolve(epoch, data)
        return self.state
