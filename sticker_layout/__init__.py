"""
Sticker Layout 表情版面模組

負責已渲染內容中的表情版面：
- 區塊掃描與 solo / inline 分類
- 尺寸樣式套用
- 變更監聽與重新分類排程
"""

from .document import MutationRecord, StickerDocument
from .classifier import Classification, SoloClassifier
from .styles import SizeTokens, StyleApplicator
from .processor import StickerProcessor, SweepStats
from .watcher import ChangeWatcher
from .scheduler import ReprocessScheduler, SweepState
from .engine import StickerLayoutEngine

__all__ = [
    "MutationRecord",
    "StickerDocument",
    "Classification",
    "SoloClassifier",
    "SizeTokens",
    "StyleApplicator",
    "StickerProcessor",
    "SweepStats",
    "ChangeWatcher",
    "ReprocessScheduler",
    "SweepState",
    "StickerLayoutEngine",
]
