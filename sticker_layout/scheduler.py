"""
重新分類排程器

把短時間內大量的變更通知合併為一次掃描（debounce），
並在頁面生命週期訊號（導航完成、頁面重新可見、載入後延遲）時直接執行掃描。
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from schemas.config_types import LayoutConfig
from .document import StickerDocument

DEBOUNCE_JOB_ID = "sticker-debounce-sweep"
DELAYED_JOB_PREFIX = "sticker-delayed-sweep-"
VISIBILITY_EVENT = "visibilitychange"


class SweepState(Enum):
    IDLE = "idle"
    PENDING_SWEEP = "pending_sweep"


class ReprocessScheduler:
    """
    重新分類排程器

    IDLE --notify--> PENDING_SWEEP（啟動/重設計時器）--計時到期--> 掃描 --> IDLE
    PENDING_SWEEP 期間的 notify 只會重設計時器，不會額外掃描。
    """

    def __init__(
        self,
        document: StickerDocument,
        sweep: Callable[[], Any],
        config: Optional[LayoutConfig] = None,
        job_scheduler: Optional[AsyncIOScheduler] = None,
    ):
        """
        初始化 ReprocessScheduler

        Args:
            document: 提供生命週期事件的文件
            sweep: 完整掃描函數
            config: 版面配置（debounce 間隔、延遲掃描、導航事件）
            job_scheduler: 外部提供的 APScheduler 實例
        """
        self.logger = logging.getLogger(__name__)
        self.document = document
        self.sweep = sweep
        self.config = config or LayoutConfig()
        self.scheduler = job_scheduler
        self._owns_scheduler = job_scheduler is None
        self.state = SweepState.IDLE
        self.sweep_counts: Counter = Counter()
        self._listening = False
        self._job_ids: Set[str] = set()

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    async def start(self) -> None:
        """啟動計時器並訂閱生命週期事件"""
        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler(
                event_loop=asyncio.get_running_loop(),
                job_defaults={'coalesce': True, 'max_instances': 1},
            )
        if not self.scheduler.running:
            self.scheduler.start()

        for delay_ms in self.config.delayed_sweeps_ms:
            self._add_date_job(self._delayed_sweep, delay_ms, f"{DELAYED_JOB_PREFIX}{delay_ms}")

        if not self._listening:
            for event_name in self.config.navigation_events:
                self.document.add_event_listener(event_name, self._on_navigation)
            self.document.add_event_listener(VISIBILITY_EVENT, self._on_visibility_change)
            self._listening = True

        self.logger.info("表情重新分類排程器已啟動")

    async def stop(self) -> None:
        """取消待執行的掃描並解除事件訂閱"""
        if self._listening:
            for event_name in self.config.navigation_events:
                self.document.remove_event_listener(event_name, self._on_navigation)
            self.document.remove_event_listener(VISIBILITY_EVENT, self._on_visibility_change)
            self._listening = False

        if self.scheduler is not None and self.scheduler.running:
            # 共用排程器上只移除自己建立的工作
            for job_id in self._job_ids:
                if self.scheduler.get_job(job_id) is not None:
                    self.scheduler.remove_job(job_id)
            self._job_ids.clear()
            if self._owns_scheduler:
                self.scheduler.shutdown(wait=False)
        self.state = SweepState.IDLE
        self.logger.info("表情重新分類排程器已關閉")

    def notify(self) -> None:
        """收到一次變更通知：進入 PENDING_SWEEP 並重設計時器"""
        if not self.running:
            self.logger.debug("排程器尚未啟動，忽略變更通知")
            return
        self.state = SweepState.PENDING_SWEEP
        self._add_date_job(self._debounced_sweep, self.config.debounce_ms, DEBOUNCE_JOB_ID)

    def _add_date_job(self, func: Callable[[], Any], delay_ms: int, job_id: str) -> None:
        self.scheduler.add_job(
            func,
            trigger='date',
            run_date=datetime.now() + timedelta(milliseconds=delay_ms),
            id=job_id,
            replace_existing=True,
        )
        self._job_ids.add(job_id)

    def run_sweep(self, reason: str) -> Any:
        """立即執行一次完整掃描"""
        self.sweep_counts[reason] += 1
        try:
            result = self.sweep()
        except Exception as e:
            self.logger.exception(f"表情掃描失敗 ({reason}): {e}")
            return None
        self.logger.debug("完成表情掃描 (%s)", reason)
        return result

    async def _debounced_sweep(self) -> None:
        # 執行前若又收到通知，新的計時器已排入，保持 PENDING_SWEEP
        if self.scheduler.get_job(DEBOUNCE_JOB_ID) is None:
            self.state = SweepState.IDLE
        self.run_sweep("debounce")

    async def _delayed_sweep(self) -> None:
        self.run_sweep("delayed")

    def _on_navigation(self, event_name: str) -> None:
        self.run_sweep(event_name)

    def _on_visibility_change(self, event_name: str) -> None:
        if not self.document.hidden:
            self.run_sweep(event_name)
