"""
區塊掃描工具

唯讀的樹狀走訪：列出文字區塊、區塊內的表情圖片，以及不在任何區塊內的獨立表情。
"""

from typing import Iterator, List, Optional, Sequence

from bs4.element import NavigableString, PageElement, PreformattedString, Tag

DEFAULT_BLOCK_TAGS = ("p",)
DEFAULT_STICKER_CLASS = "sticker-emoji"


def get_classes(node: Tag) -> List[str]:
    """取得元素 class 列表（兼容字串形式）"""
    classes = node.get("class") or []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)


def is_text_node(node: Optional[PageElement]) -> bool:
    # 註解、CDATA 等屬於 PreformattedString，不視為文字節點
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def is_blank_text(node: Optional[PageElement]) -> bool:
    return is_text_node(node) and str(node).strip() == ""


def is_line_break(node: Optional[PageElement]) -> bool:
    return isinstance(node, Tag) and node.name == "br"


def is_sticker_image(node: Optional[PageElement], sticker_class: str = DEFAULT_STICKER_CLASS) -> bool:
    return isinstance(node, Tag) and node.name == "img" and sticker_class in get_classes(node)


def is_block(node: Optional[PageElement], block_tags: Sequence[str] = DEFAULT_BLOCK_TAGS) -> bool:
    return isinstance(node, Tag) and node.name in block_tags


def closest_block(node: PageElement, block_tags: Sequence[str] = DEFAULT_BLOCK_TAGS) -> Optional[Tag]:
    """node 本身或最近的區塊祖先"""
    if is_block(node, block_tags):
        return node
    return node.find_parent(list(block_tags))


def iter_blocks(root: Tag, block_tags: Sequence[str] = DEFAULT_BLOCK_TAGS) -> Iterator[Tag]:
    """依文件順序列出 root（含自身）範圍內的文字區塊"""
    if is_block(root, block_tags):
        yield root
    yield from root.find_all(list(block_tags))


def find_sticker_images(block: Tag, sticker_class: str = DEFAULT_STICKER_CLASS) -> List[Tag]:
    """區塊子樹內的所有表情圖片"""
    return block.find_all("img", class_=sticker_class)


def iter_standalone_images(
    root: Tag,
    sticker_class: str = DEFAULT_STICKER_CLASS,
    block_tags: Sequence[str] = DEFAULT_BLOCK_TAGS,
) -> Iterator[Tag]:
    """不在任何文字區塊內的表情圖片"""
    for img in root.find_all("img", class_=sticker_class):
        if img.find_parent(list(block_tags)) is None:
            yield img


def previous_significant_sibling(node: PageElement) -> Optional[PageElement]:
    """往前略過空白文字節點，返回第一個停下的兄弟節點"""
    prev = node.previous_sibling
    while prev is not None and is_blank_text(prev):
        prev = prev.previous_sibling
    return prev


def next_significant_sibling(node: PageElement) -> Optional[PageElement]:
    """往後略過空白文字節點，返回第一個停下的兄弟節點"""
    nxt = node.next_sibling
    while nxt is not None and is_blank_text(nxt):
        nxt = nxt.next_sibling
    return nxt
