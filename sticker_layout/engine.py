"""
表情版面引擎

組合處理器、變更監聽器與排程器：文件就緒時先掃描一次並開始觀察，
之後由變更通知與生命週期事件驅動重新分類。
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from schemas.config_types import LayoutConfig
from .document import StickerDocument
from .processor import StickerProcessor
from .scheduler import ReprocessScheduler
from .watcher import ChangeWatcher

READY_EVENT = "DOMContentLoaded"


class StickerLayoutEngine:
    """表情版面引擎"""

    def __init__(
        self,
        document: StickerDocument,
        config: Optional[LayoutConfig] = None,
        job_scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.document = document
        self.config = config or LayoutConfig()
        self.processor = StickerProcessor(document, self.config)
        self.scheduler = ReprocessScheduler(document, self.processor.process_all, self.config, job_scheduler)
        self.watcher = ChangeWatcher(
            document,
            self.scheduler.notify,
            content_selectors=self.config.content_selectors,
            block_tags=self.config.block_tags,
        )

    async def start(self) -> None:
        await self.scheduler.start()
        if self.document.is_ready:
            self._initialize()
        else:
            self.document.add_event_listener(READY_EVENT, self._on_ready)

    def _on_ready(self, event_name: str) -> None:
        self.document.remove_event_listener(READY_EVENT, self._on_ready)
        self._initialize()

    def _initialize(self) -> None:
        self.scheduler.run_sweep("load")
        self.watcher.connect()
        self.logger.info("表情版面引擎已初始化，觀察 %d 個區域", len(self.watcher.observed_roots))

    async def stop(self) -> None:
        self.document.remove_event_listener(READY_EVENT, self._on_ready)
        self.watcher.disconnect()
        await self.scheduler.stop()

    async def __aenter__(self) -> "StickerLayoutEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
