"""
表情尺寸樣式套用

從文件的 CSS 自訂屬性讀取 solo / inline 的最大尺寸，並以 !important
寫入圖片的 style 屬性，避免外部內容樣式覆蓋版面判斷。
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

SOLO_TOKEN = "--sticker-solo-max-width"
INLINE_TOKEN = "--sticker-inline-max-width"
DEFAULT_SOLO_MAX = "256px"
DEFAULT_INLINE_MAX = "64px"

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
_ROOT_SELECTORS = {":root", "html"}

logger = logging.getLogger(__name__)


def _split_top_level(text: str, separator: str) -> List[str]:
    """以 separator 切分，括號與引號內的字元不視為分隔符"""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    quote = ""
    escaped = False
    for char in text:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif quote:
            if char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")" and depth:
            depth -= 1
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def parse_declarations(style: Optional[str]) -> Dict[str, str]:
    """解析 "a: b; c: d" 形式的宣告，保留出現順序，後者覆蓋前者

    url(data:...;base64,...) 或字串內的分號不會切斷宣告。
    """
    declarations: Dict[str, str] = {}
    if not style:
        return declarations
    for part in _split_top_level(style, ";"):
        if ":" not in part:
            continue
        name, value = part.split(":", 1)
        name = name.strip()
        if not name:
            continue
        # 自訂屬性區分大小寫，一般屬性不區分
        key = name if name.startswith("--") else name.lower()
        declarations[key] = value.strip()
    return declarations


def serialize_declarations(declarations: Dict[str, str]) -> str:
    return "; ".join(f"{name}: {value}" for name, value in declarations.items()) + ";"


def iter_top_level_rules(css: str) -> Iterator[Tuple[str, str]]:
    """
    列出最外層的 (選擇器, 宣告區塊)

    @media、@supports 等 at-rule 內的規則只在條件成立時生效，這裡整段略過。
    """
    prelude: List[str] = []
    body: List[str] = []
    depth = 0
    for char in css:
        if char == "{":
            depth += 1
            if depth > 1:
                body.append(char)
            continue
        if char == "}" and depth:
            depth -= 1
            if depth:
                body.append(char)
                continue
            selector = "".join(prelude).strip()
            if selector and not selector.startswith("@"):
                yield selector, "".join(body)
            prelude, body = [], []
            continue
        if depth:
            body.append(char)
        elif char == ";":
            # @import / @charset 這類沒有區塊的 at-rule
            prelude = []
        else:
            prelude.append(char)


def read_custom_properties(soup: BeautifulSoup) -> Dict[str, str]:
    """
    讀取套用在根元素上的 CSS 自訂屬性

    依序讀取 <style> 中最外層的 :root / html 規則，最後是 <html style="...">，後者覆蓋前者。
    """
    properties: Dict[str, str] = {}
    for style_tag in soup.find_all("style"):
        css = _COMMENT_RE.sub("", "".join(str(child) for child in style_tag.contents))
        for selectors, body in iter_top_level_rules(css):
            if not any(sel.strip() in _ROOT_SELECTORS for sel in selectors.split(",")):
                continue
            for name, value in parse_declarations(body).items():
                if name.startswith("--"):
                    properties[name] = value

    html = soup.find("html")
    if html is not None:
        for name, value in parse_declarations(html.get("style")).items():
            if name.startswith("--"):
                properties[name] = value
    return properties


@dataclass(frozen=True)
class SizeTokens:
    """已解析的最大尺寸"""
    solo_max: str = DEFAULT_SOLO_MAX
    inline_max: str = DEFAULT_INLINE_MAX

    @classmethod
    def from_document(cls, soup: BeautifulSoup, solo_override: str = "", inline_override: str = "") -> "SizeTokens":
        """
        依 設定覆蓋值 → 文件自訂屬性 → 預設值 的順序解析尺寸

        Args:
            soup: 文件樹
            solo_override: 設定檔指定的 solo 尺寸（空字串表示不覆蓋）
            inline_override: 設定檔指定的 inline 尺寸
        """
        properties = read_custom_properties(soup)
        solo = (solo_override or "").strip() or properties.get(SOLO_TOKEN, "").strip() or DEFAULT_SOLO_MAX
        inline = (inline_override or "").strip() or properties.get(INLINE_TOKEN, "").strip() or DEFAULT_INLINE_MAX
        logger.debug("表情尺寸: solo=%s inline=%s", solo, inline)
        return cls(solo_max=solo, inline_max=inline)


class StyleApplicator:
    """把分類結果轉成圖片的內聯樣式"""

    def __init__(self, tokens: Optional[SizeTokens] = None):
        self.tokens = tokens or SizeTokens()

    def declarations_for(self, is_solo: bool) -> List[Tuple[str, str]]:
        max_size = self.tokens.solo_max if is_solo else self.tokens.inline_max
        return [
            ("max-width", f"{max_size} !important"),
            ("max-height", f"{max_size} !important"),
            ("width", "auto !important"),
            ("height", "auto !important"),
            ("display", "inline !important"),
            ("vertical-align", "middle !important"),
        ]

    def apply(self, img: Tag, is_solo: bool) -> None:
        """強制套用尺寸樣式；相同輸入重複套用結果不變"""
        declarations = parse_declarations(img.get("style"))
        for name, value in self.declarations_for(is_solo):
            declarations[name] = value
        img["style"] = serialize_declarations(declarations)
