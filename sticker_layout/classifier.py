"""
表情版面分類器

判斷段落是否只包含表情（solo 區塊），以及混合段落中每張表情是否被換行包圍。
每次呼叫都從目前的樹狀態重新計算，不做跨呼叫快取；分類結果以 class 標記
直接寫在元素上。
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from bs4.element import Tag

from .scanner import (
    DEFAULT_STICKER_CLASS,
    find_sticker_images,
    is_line_break,
    is_sticker_image,
    is_text_node,
    next_significant_sibling,
    previous_significant_sibling,
)

SOLO_CONTAINER_CLASS = "sticker-solo-container"
SOLO_IMAGE_CLASS = "sticker-solo-image"


@dataclass(frozen=True)
class Classification:
    """單一區塊的分類結果"""
    block_is_solo: bool
    image_classifications: Tuple[bool, ...]


def _add_class(node: Tag, name: str) -> None:
    classes = node.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    if name not in classes:
        node["class"] = list(classes) + [name]


def _remove_class(node: Tag, name: str) -> None:
    classes = node.get("class")
    if not classes:
        return
    if isinstance(classes, str):
        classes = classes.split()
    if name in classes:
        remaining = [cls for cls in classes if cls != name]
        if remaining:
            node["class"] = remaining
        else:
            del node["class"]


class SoloClassifier:
    """solo / inline 分類器"""

    def __init__(
        self,
        sticker_class: str = DEFAULT_STICKER_CLASS,
        solo_container_class: str = SOLO_CONTAINER_CLASS,
        solo_image_class: str = SOLO_IMAGE_CLASS,
    ):
        self.sticker_class = sticker_class
        self.solo_container_class = solo_container_class
        self.solo_image_class = solo_image_class

    def is_block_only_stickers(self, block: Tag) -> bool:
        """區塊子節點是否只有空白文字、換行與表情圖片"""
        for node in block.children:
            if is_text_node(node):
                if str(node).strip() != "":
                    return False
            elif isinstance(node, Tag):
                if is_line_break(node):
                    continue
                if is_sticker_image(node, self.sticker_class):
                    continue
                return False
        return True

    @staticmethod
    def is_surrounded_by_breaks(img: Tag) -> bool:
        """表情前後（略過空白文字）是否都是 <br>；區塊邊界不算換行"""
        return is_line_break(previous_significant_sibling(img)) and is_line_break(next_significant_sibling(img))

    def classify(self, block: Tag, images: Optional[Sequence[Tag]] = None) -> Classification:
        """
        計算區塊與其中表情的分類

        Args:
            block: 文字區塊
            images: 區塊內的表情圖片，未提供時自行搜尋

        Returns:
            Classification: 區塊是否 solo，以及每張圖片是否 solo（順序同 images）
        """
        if images is None:
            images = find_sticker_images(block, self.sticker_class)

        if self.is_block_only_stickers(block):
            return Classification(True, tuple(True for _ in images))
        return Classification(False, tuple(self.is_surrounded_by_breaks(img) for img in images))

    def clear_markers(self, block: Tag, images: Sequence[Tag]) -> None:
        """清除上一次的分類標記"""
        _remove_class(block, self.solo_container_class)
        for img in images:
            _remove_class(img, self.solo_image_class)

    def clear_image_marker(self, img: Tag) -> None:
        """不在區塊內的表情一律 inline，移除殘留的 solo 標記"""
        _remove_class(img, self.solo_image_class)

    def mark(self, block: Tag, images: Sequence[Tag], classification: Classification) -> None:
        """依分類結果寫回標記"""
        if classification.block_is_solo:
            _add_class(block, self.solo_container_class)
        for img, is_solo in zip(images, classification.image_classifications):
            if is_solo:
                _add_class(img, self.solo_image_class)

    def reclassify(self, block: Tag, images: Optional[List[Tag]] = None) -> Classification:
        """清除舊標記、重新分類並寫回"""
        if images is None:
            images = find_sticker_images(block, self.sticker_class)
        self.clear_markers(block, images)
        classification = self.classify(block, images)
        self.mark(block, images, classification)
        return classification
