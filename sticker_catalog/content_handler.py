"""
文章內容短代碼處理器

在服務端將文章 HTML 中的 :prefix_name: 短代碼替換為表情圖片，
產生的 <img class="sticker-emoji"> 正是版面分類引擎辨識的標記。
"""

import html
import json
import logging
import re
from typing import Any, Dict, Mapping, Optional

import httpx

from schemas.config_types import LoaderConfig, PluginConfig
from .ingestion import parse_owo_config, to_shortcode_map

# 短代碼: :prefix_name:（字母、數字、底線、連字符、中文，允許冒號內側有空格），排除轉義的冒號
SHORTCODE_PATTERN = re.compile(r"(?<!\\):\s*([a-zA-Z0-9_\-\u4e00-\u9fa5]+)\s*:(?!\\)")
# 轉義短代碼: \:xxx\: 或 \:xxx: 或 :xxx\:
ESCAPED_SHORTCODE_PATTERN = re.compile(
    r"\\:([a-zA-Z0-9_\-\u4e00-\u9fa5]+)\\?:|:([a-zA-Z0-9_\-\u4e00-\u9fa5]+)\\:"
)

BASE_STICKER_STYLE = "display:inline;vertical-align:middle;background:none;border:none;box-shadow:none;"


def render_sticker_img(url: str, alt: str, extra_style: str = "") -> str:
    """產生表情圖片標籤"""
    escaped_url = html.escape(url, quote=True)
    escaped_alt = html.escape(alt, quote=True)
    style = html.escape(BASE_STICKER_STYLE + (extra_style or ""), quote=True)
    return (
        f'<img src="{escaped_url}" srcset="{escaped_url}" sizes="" alt="{escaped_alt}" '
        f'title="{escaped_alt}" class="sticker-emoji no-lightbox" style="{style}" '
        f'referrerpolicy="no-referrer">'
    )


def replace_shortcodes(content: Optional[str], sticker_map: Mapping[str, str], extra_style: str = "") -> Optional[str]:
    """
    將內容中的短代碼替換為表情圖片

    Args:
        content: 文章 HTML
        sticker_map: {短代碼: 圖片 URL}
        extra_style: 附加在圖片 style 後的樣式

    Returns:
        Optional[str]: 處理後的內容，未知短代碼保持原樣，轉義短代碼還原為 :name:
    """
    if not content:
        return content

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        url = sticker_map.get(f":{name}:")
        if url is None:
            return match.group(0)
        return render_sticker_img(url, name, extra_style)

    processed = SHORTCODE_PATTERN.sub(_replace, content)
    return ESCAPED_SHORTCODE_PATTERN.sub(
        lambda m: f":{m.group(1) or m.group(2)}:", processed
    )


class StickerContentHandler:
    """
    文章內容處理器

    依插件配置載入短代碼映射並替換文章內容。遠端目錄以 URL 為鍵快取，
    載入或解析失敗時沿用上次的快取（沒有快取則不做替換）。
    """

    def __init__(
        self,
        plugin_config: PluginConfig,
        config: Optional[LoaderConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.plugin_config = plugin_config
        self.config = config or LoaderConfig()
        self._client = http_client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
        )
        self._owns_client = http_client is None
        self._sticker_cache: Dict[str, str] = {}
        self._cached_config_url: Optional[str] = None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def handle(self, content: Optional[str]) -> Optional[str]:
        """替換文章內容中的短代碼，任何錯誤都返回原內容"""
        try:
            sticker_map = await self.load_sticker_map()
        except Exception as e:
            self.logger.error(f"處理文章表情失敗: {e}")
            return content

        if not sticker_map:
            return content
        return replace_shortcodes(content, sticker_map, self.plugin_config.sticker_style)

    async def load_sticker_map(self) -> Dict[str, str]:
        """依配置載入 {短代碼: URL} 映射"""
        if self.plugin_config.enable_custom_mode:
            return await self._load_custom_stickers()

        config_url = self.plugin_config.sticker_config_url
        if not config_url:
            return {}

        if config_url == self._cached_config_url and self._sticker_cache:
            return dict(self._sticker_cache)

        try:
            response = await self._client.get(config_url, timeout=self.config.timeout)
            response.raise_for_status()
            sticker_map = self._parse(response.text)
        except Exception as e:
            self.logger.error(f"從 {config_url} 載入表情配置失敗: {e}")
            return dict(self._sticker_cache)

        self._store(sticker_map, config_url)
        self.logger.info(f"已從 {config_url} 載入 {len(sticker_map)} 個表情")
        return sticker_map

    async def _load_custom_stickers(self) -> Dict[str, str]:
        try:
            response = await self._client.get(self.config.custom_stickers_path)
            response.raise_for_status()
            if not response.text:
                return {}
            sticker_map = self._parse(response.text)
        except Exception as e:
            self.logger.error(f"解析自訂表情失敗: {e}")
            return dict(self._sticker_cache)

        self._store(sticker_map, "custom")
        self.logger.info(f"已載入 {len(sticker_map)} 個自訂表情")
        return sticker_map

    @staticmethod
    def _parse(body: str) -> Dict[str, str]:
        data: Any = json.loads(body)
        if isinstance(data, str):
            data = json.loads(data)
        return to_shortcode_map(parse_owo_config(data))

    def _store(self, sticker_map: Dict[str, str], source: str) -> None:
        self._sticker_cache.clear()
        self._sticker_cache.update(sticker_map)
        self._cached_config_url = source
