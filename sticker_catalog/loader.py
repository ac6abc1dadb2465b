"""
表情目錄載入器

負責讀取插件配置、從自訂資料或遠端 URL 載入表情目錄，
並在任何失敗時退回內建預設目錄。結果寫入 CatalogStore。
"""

import json
import logging
from typing import Any, List, Optional

import httpx

from schemas.config_types import LoaderConfig, PluginConfig
from schemas.sticker_types import StickerGroup
from .defaults import default_sticker_groups
from .ingestion import count_stickers, parse_owo_config
from .store import CatalogStore


class StickerLoader:
    """
    表情目錄載入器

    同一時間可能有多個 reload 在進行，沒有去重機制，最後完成的結果覆蓋目錄。
    """

    def __init__(
        self,
        store: Optional[CatalogStore] = None,
        config: Optional[LoaderConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        plugin_config: Optional[PluginConfig] = None,
    ):
        """
        初始化 StickerLoader

        Args:
            store: 目錄狀態容器
            config: 載入端點與逾時設定
            http_client: 外部提供的 HTTP 客戶端（未提供時自行建立並負責關閉）
            plugin_config: 已知的插件配置，未提供時會從設定端點讀取
        """
        self.logger = logging.getLogger(__name__)
        self.store = store or CatalogStore()
        self.config = config or LoaderConfig()
        self.plugin_config = plugin_config or PluginConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
        )

    async def __aenter__(self) -> "StickerLoader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def groups(self):
        return self.store.groups

    async def _get_json(self, url: str) -> Any:
        response = await self._client.get(url)
        response.raise_for_status()
        data = response.json()
        # 自訂資料端點直接回傳儲存的 JSON 字串
        if isinstance(data, str):
            data = json.loads(data)
        return data

    async def load_plugin_config(self) -> PluginConfig:
        """
        從 ConfigMap 端點讀取插件配置

        Returns:
            PluginConfig: 讀取到的配置，失敗時返回空配置
        """
        try:
            config_map = await self._get_json(self.config.config_map_path)
            basic = ((config_map or {}).get("data") or {}).get("basic")
            if basic:
                self.plugin_config = PluginConfig.from_wire(json.loads(basic))
                return self.plugin_config
        except Exception as e:
            self.logger.warning(f"載入插件配置失敗: {e}")
        return PluginConfig()

    async def _load_custom_stickers(self) -> Optional[List[StickerGroup]]:
        try:
            custom_data = await self._get_json(self.config.custom_stickers_path)
            if custom_data:
                return parse_owo_config(custom_data)
        except Exception as e:
            self.logger.warning(f"載入自訂表情失敗，改用其他來源: {e}")
        return None

    async def load_stickers(self, config_url: Optional[str] = None) -> None:
        """
        載入表情目錄（已載入時不重複執行）

        Args:
            config_url: 明確指定的目錄 URL，優先於插件配置中的 URL
        """
        if self.store.loaded:
            return

        self.store.loading = True
        try:
            config = self.plugin_config
            if config.is_empty():
                config = await self.load_plugin_config()

            if config.enable_custom_mode:
                self.logger.info("從自訂模式載入表情")
                groups = await self._load_custom_stickers()
                if groups is not None:
                    self._replace(groups, "custom")
                    return

            source_url = config_url or config.sticker_config_url
            if source_url:
                self.logger.info(f"從 {source_url} 載入表情")
                self._replace(parse_owo_config(await self._get_json(source_url)), source_url)
            else:
                self._replace(default_sticker_groups(), "default")
        except Exception as e:
            self.logger.error(f"載入表情失敗，使用預設表情: {e}")
            self._replace(default_sticker_groups(), "default")
        finally:
            self.store.loading = False

    def _replace(self, groups: List[StickerGroup], source: str) -> None:
        self.store.replace(groups)
        self.store.loaded = True
        self.logger.info(f"已載入 {len(groups)} 個分組、{count_stickers(groups)} 個表情 ({source})")

    async def reload_stickers(self, config_url: Optional[str] = None) -> None:
        """強制重新載入表情目錄"""
        self.store.loaded = False
        await self.load_stickers(config_url)

    def is_default_editor_enabled(self) -> bool:
        return self.plugin_config.enable_default_editor is not False

    def is_vditor_editor_enabled(self) -> bool:
        return self.plugin_config.enable_vditor_editor is not False

    def is_bytemd_editor_enabled(self) -> bool:
        return self.plugin_config.enable_bytemd_editor is not False

    def is_willow_editor_enabled(self) -> bool:
        return self.plugin_config.enable_willow_editor is not False
