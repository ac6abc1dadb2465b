"""
Sticker Catalog 表情目錄模組

負責表情目錄的解析、載入與內容短代碼替換：
- 兩種目錄格式的標準化解析
- 目錄快照狀態與訂閱
- 遠端/自訂目錄載入與預設目錄退回
- 文章短代碼轉圖片
"""

from .ingestion import ingest, parse_owo_config, to_shortcode_map
from .shortcode import build_shortcode, generate_prefix, normalize_url
from .store import CatalogStore
from .loader import StickerLoader
from .content_handler import StickerContentHandler, replace_shortcodes
from .defaults import default_sticker_groups

__all__ = [
    "ingest",
    "parse_owo_config",
    "to_shortcode_map",
    "build_shortcode",
    "generate_prefix",
    "normalize_url",
    "CatalogStore",
    "StickerLoader",
    "StickerContentHandler",
    "replace_shortcodes",
    "default_sticker_groups",
]
