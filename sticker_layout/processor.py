"""
表情版面處理器

一次完整掃描：處理文件中所有文字區塊，再把不在區塊內的獨立表情套用 inline 尺寸。
"""

import logging
from dataclasses import dataclass
from typing import Optional

from bs4.element import Tag

from schemas.config_types import LayoutConfig
from .classifier import Classification, SoloClassifier
from .document import StickerDocument
from .scanner import find_sticker_images, is_block, iter_blocks, iter_standalone_images
from .styles import SizeTokens, StyleApplicator


@dataclass
class SweepStats:
    """單次掃描統計"""
    blocks: int = 0
    solo_blocks: int = 0
    images: int = 0
    solo_images: int = 0
    standalone_images: int = 0


class StickerProcessor:
    """
    表情版面處理器

    不保存任何分類狀態，每次掃描都從文件目前的內容重新計算。
    """

    def __init__(self, document: StickerDocument, config: Optional[LayoutConfig] = None):
        self.logger = logging.getLogger(__name__)
        self.document = document
        self.config = config or LayoutConfig()
        self.classifier = SoloClassifier(
            sticker_class=self.config.sticker_class,
            solo_container_class=self.config.solo_container_class,
            solo_image_class=self.config.solo_image_class,
        )

    def _applicator(self) -> StyleApplicator:
        tokens = SizeTokens.from_document(
            self.document.soup,
            solo_override=self.config.solo_max_size,
            inline_override=self.config.inline_max_size,
        )
        return StyleApplicator(tokens)

    def process_block(self, block: Tag, applicator: Optional[StyleApplicator] = None) -> Optional[Classification]:
        """
        處理單一文字區塊

        Args:
            block: 文字區塊
            applicator: 已解析尺寸的樣式套用器，未提供時從文件讀取

        Returns:
            Optional[Classification]: 分類結果，非區塊或沒有表情時返回 None
        """
        if not is_block(block, self.config.block_tags):
            return None
        images = find_sticker_images(block, self.config.sticker_class)
        if not images:
            # 表情全部被移走的區塊也不能留下 solo 標記
            self.classifier.clear_markers(block, images)
            return None

        applicator = applicator or self._applicator()
        classification = self.classifier.reclassify(block, images)
        for img, is_solo in zip(images, classification.image_classifications):
            applicator.apply(img, is_solo)
        return classification

    def process_all(self) -> SweepStats:
        """掃描整份文件"""
        stats = SweepStats()
        applicator = self._applicator()
        root = self.document.soup

        for block in iter_blocks(root, self.config.block_tags):
            classification = self.process_block(block, applicator)
            if classification is None:
                continue
            stats.blocks += 1
            stats.solo_blocks += int(classification.block_is_solo)
            stats.images += len(classification.image_classifications)
            stats.solo_images += sum(classification.image_classifications)

        for img in iter_standalone_images(root, self.config.sticker_class, self.config.block_tags):
            self.classifier.clear_image_marker(img)
            applicator.apply(img, False)
            stats.standalone_images += 1

        self.logger.debug(
            "表情掃描完成: %d 個區塊 (%d solo)，%d 張表情 (%d solo)，%d 張獨立表情",
            stats.blocks, stats.solo_blocks, stats.images, stats.solo_images, stats.standalone_images,
        )
        return stats
