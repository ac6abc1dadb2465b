"""
Sticker 目錄相關的資料類型定義

定義 Sticker、StickerGroup 等標準化資料結構。兩種外部格式（扁平映射與 OwO 分組格式）
經過 sticker_catalog.ingestion 解析後都會轉成這裡的型別。
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


class CatalogFormatError(ValueError):
    """表情目錄結構錯誤異常"""
    pass


@dataclass(frozen=True)
class Sticker:
    """
    單一表情資料結構

    Attributes:
        name: 分組內的識別名稱
        url: 預覽圖 URL（面板顯示用），空字串代表純文字表情
        alt: 替代文字
        shortcode: 短代碼，純文字表情直接使用原文
        origin_url: 原圖 URL（插入文章用），未提供時等於 url
    """
    name: str
    url: str = ""
    alt: str = ""
    shortcode: str = ""
    origin_url: Optional[str] = None

    def __post_init__(self):
        if self.origin_url is None:
            # frozen dataclass 需透過 object.__setattr__ 設定預設值
            object.__setattr__(self, "origin_url", self.url)

    @property
    def is_image(self) -> bool:
        """是否為圖片表情"""
        return bool(self.url)

    def to_dict(self) -> Dict[str, Any]:
        """轉換為前端使用的 camelCase 字典"""
        return {
            "name": self.name,
            "url": self.url,
            "originUrl": self.origin_url,
            "alt": self.alt,
            "shortcode": self.shortcode,
        }


@dataclass(frozen=True)
class StickerGroup:
    """
    表情分組資料結構

    Attributes:
        name: 分組顯示名稱，同一目錄內唯一
        prefix: 短代碼前綴，由分組名稱衍生
        stickers: 依來源順序排列的表情
        icon: 分組圖示（可選）
    """
    name: str
    prefix: str = ""
    stickers: List[Sticker] = field(default_factory=list)
    icon: str = ""

    def __len__(self) -> int:
        return len(self.stickers)

    def find(self, shortcode: str) -> Optional[Sticker]:
        """依短代碼尋找表情"""
        for sticker in self.stickers:
            if sticker.shortcode == shortcode:
                return sticker
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "icon": self.icon,
            "prefix": self.prefix,
            "stickers": [sticker.to_dict() for sticker in self.stickers],
        }
