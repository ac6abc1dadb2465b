"""
表情目錄狀態容器

保存目前生效的目錄快照。重新載入時以新列表整體替換，
並依序通知訂閱者；快照本身不會被就地修改。
"""

import logging
from typing import Callable, List, Optional, Tuple

from schemas.sticker_types import StickerGroup

Subscriber = Callable[[Tuple[StickerGroup, ...]], None]


class CatalogStore:
    """目錄快照的讀取/替換介面，附帶訂閱通知"""

    def __init__(self, groups: Optional[List[StickerGroup]] = None):
        self.logger = logging.getLogger(__name__)
        self._groups: Tuple[StickerGroup, ...] = tuple(groups or ())
        self._subscribers: List[Subscriber] = []
        self.loading = False
        self.loaded = False

    @property
    def groups(self) -> Tuple[StickerGroup, ...]:
        return self._groups

    def replace(self, groups: List[StickerGroup]) -> None:
        """以新目錄替換快照並通知訂閱者"""
        self._groups = tuple(groups)
        self.logger.debug("目錄快照已替換: %d 個分組", len(self._groups))
        for callback in list(self._subscribers):
            try:
                callback(self._groups)
            except Exception as e:
                self.logger.error(f"目錄訂閱者執行失敗: {e}")

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        註冊目錄變更回調

        Args:
            callback: 接收新快照的函數

        Returns:
            Callable[[], None]: 取消訂閱的函數
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe
