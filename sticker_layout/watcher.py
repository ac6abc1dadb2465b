"""
內容變更監聽器

觀察內容容器（找不到時退回整個 body）內的節點增刪與文字變更，
遇到需要重新分類的變更時通知排程器。
"""

import logging
from typing import Callable, List, Optional, Sequence

from bs4.element import PageElement

from schemas.config_types import DEFAULT_CONTENT_SELECTORS
from .document import MutationRecord, Observation, StickerDocument
from .scanner import DEFAULT_BLOCK_TAGS, closest_block


class ChangeWatcher:
    """內容變更監聽器"""

    def __init__(
        self,
        document: StickerDocument,
        on_change: Callable[[], None],
        content_selectors: Optional[Sequence[str]] = None,
        block_tags: Sequence[str] = DEFAULT_BLOCK_TAGS,
    ):
        """
        初始化 ChangeWatcher

        Args:
            document: 被觀察的文件
            on_change: 一批變更中有任何需要處理的紀錄時呼叫
            content_selectors: 內容容器選擇器
            block_tags: 文字區塊標籤
        """
        self.logger = logging.getLogger(__name__)
        self.document = document
        self.on_change = on_change
        self.content_selectors = list(content_selectors if content_selectors is not None else DEFAULT_CONTENT_SELECTORS)
        self.block_tags = tuple(block_tags)
        self.observed_roots: List[PageElement] = []
        self._observation: Optional[Observation] = None

    @property
    def connected(self) -> bool:
        return self._observation is not None

    def _find_content_areas(self) -> List[PageElement]:
        if not self.content_selectors:
            return []
        try:
            return self.document.select(",".join(self.content_selectors))
        except Exception as e:
            self.logger.warning(f"內容容器選擇器無效，改為觀察整個文件: {e}")
            return []

    def connect(self) -> List[PageElement]:
        """
        開始觀察

        Returns:
            List[PageElement]: 實際觀察的根節點
        """
        self.disconnect()
        areas = self._find_content_areas()
        if areas:
            self.observed_roots = areas
            self.logger.debug("觀察 %d 個內容容器", len(areas))
        else:
            self.observed_roots = [self.document.body]
            self.logger.debug("未找到內容容器，觀察整個 body")
        self._observation = self.document.observe(self._handle_mutations, self.observed_roots)
        return self.observed_roots

    def disconnect(self) -> None:
        if self._observation is not None:
            self._observation.disconnect()
            self._observation = None
        self.observed_roots = []

    def is_relevant(self, record: MutationRecord) -> bool:
        """目標位於文字區塊內，或有節點被新增/移除"""
        if closest_block(record.target, self.block_tags) is not None:
            return True
        return bool(record.added_nodes) or bool(record.removed_nodes)

    def _handle_mutations(self, records: List[MutationRecord]) -> None:
        if any(self.is_relevant(record) for record in records):
            self.on_change()
