"""
型別安全的配置結構定義

使用 dataclass 定義各種配置類型，提供型別安全的配置載入和存取功能。
"""

from copy import deepcopy
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from typing import Dict, Any, List, Optional
from pathlib import Path
import yaml
import logging
import os
from dotenv import load_dotenv


DEFAULT_CONTENT_SELECTORS = [
    ".content",
    ".post-content",
    ".article-content",
    ".entry-content",
    ".markdown-body",
    "article",
    "#post-comment",
    ".tk-comments",
    ".comments",
]

DEFAULT_NAVIGATION_EVENTS = [
    "pjax:complete",
    "pjax:end",
    "swup:contentReplaced",
    "turbo:load",
    "turbolinks:load",
]

# 外部插件設定使用 camelCase，對應到 dataclass 欄位
PLUGIN_FIELD_MAPPINGS = {
    "enableCustomMode": "enable_custom_mode",
    "stickerConfigUrl": "sticker_config_url",
    "enableDefaultEditor": "enable_default_editor",
    "enableVditorEditor": "enable_vditor_editor",
    "enableBytemdEditor": "enable_bytemd_editor",
    "enableWillowEditor": "enable_willow_editor",
    "stickerStyle": "sticker_style",
}


@dataclass
class SystemConfig:
    """系統配置"""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    debug_mode: bool = False


@dataclass
class PluginConfig:
    """插件配置（唯讀，由外部設定提供）

    編輯器開關為 None 時視為啟用，只有明確設為 False 才停用。
    """
    enable_custom_mode: bool = False
    sticker_config_url: str = ""
    enable_default_editor: Optional[bool] = None
    enable_vditor_editor: Optional[bool] = None
    enable_bytemd_editor: Optional[bool] = None
    enable_willow_editor: Optional[bool] = None
    sticker_style: str = ""

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> 'PluginConfig':
        """從外部 JSON（camelCase 或 snake_case）建立插件配置

        Args:
            data: 設定字典

        Returns:
            PluginConfig: 插件配置，未知欄位會被忽略
        """
        if not isinstance(data, dict):
            return cls()
        known = set(cls.__dataclass_fields__)
        values = {}
        for key, value in data.items():
            actual_key = PLUGIN_FIELD_MAPPINGS.get(key, key)
            if actual_key in known:
                values[actual_key] = value
        return cls(**values)

    def is_empty(self) -> bool:
        return self == PluginConfig()


@dataclass
class LayoutConfig:
    """表情版面分類配置"""
    block_tags: List[str] = field(default_factory=lambda: ["p"])
    sticker_class: str = "sticker-emoji"
    solo_container_class: str = "sticker-solo-container"
    solo_image_class: str = "sticker-solo-image"
    solo_max_size: str = ""    # 空字串表示讀取文件中的 CSS 變數
    inline_max_size: str = ""
    debounce_ms: int = 100
    delayed_sweeps_ms: List[int] = field(default_factory=lambda: [300, 1000])
    content_selectors: List[str] = field(default_factory=lambda: list(DEFAULT_CONTENT_SELECTORS))
    navigation_events: List[str] = field(default_factory=lambda: list(DEFAULT_NAVIGATION_EVENTS))


@dataclass
class LoaderConfig:
    """表情目錄載入配置"""
    base_url: str = "http://localhost:8090"
    config_map_path: str = "/api/v1alpha1/configmaps/editor-sticker-configmap"
    custom_stickers_path: str = "/apis/editor-sticker.ncii.cn/v1alpha1/custom-stickers"
    timeout: float = 10.0


class ConfigurationError(Exception):
    """配置錯誤異常"""
    pass


@dataclass
class AppConfig:
    """應用程式總配置

    區段對應 config.yaml 的頂層鍵：system、plugin、layout、loader。
    """
    system: SystemConfig = field(default_factory=SystemConfig)
    plugin: PluginConfig = field(default_factory=PluginConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)

    def __post_init__(self):
        """套用 .env / 環境變數覆蓋"""
        load_dotenv()

        config_url = os.getenv('STICKER_CONFIG_URL')
        if config_url:
            self.plugin.sticker_config_url = config_url

        log_level = os.getenv('STICKER_LOG_LEVEL')
        if log_level:
            self.system.log_level = log_level.upper()

    @classmethod
    def from_yaml(cls, config_path: str) -> 'AppConfig':
        """從 YAML 文件載入配置，並以同目錄的 config-example.yaml 作為預設值

        Args:
            config_path: 配置文件路徑

        Returns:
            AppConfig: 配置實例，文件不存在時為預設配置

        Raises:
            ConfigurationError: 文件無法解析或內容無效
        """
        config_file = Path(config_path)
        if not config_file.exists():
            logging.warning(f"配置檔案不存在: {config_path}，使用預設配置")
            return cls()

        try:
            with config_file.open('r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"無法讀取配置 {config_path}: {e}") from e

        example_file = config_file.parent / "config-example.yaml"
        if example_file.exists() and example_file.resolve() != config_file.resolve():
            try:
                with example_file.open('r', encoding='utf-8') as f:
                    defaults = yaml.safe_load(f) or {}
                if isinstance(data, dict) and isinstance(defaults, dict):
                    data = cls._deep_merge(defaults, data)
            except (OSError, yaml.YAMLError) as e:
                logging.warning(f"預設配置 {example_file} 無法讀取，略過: {e}")

        cls._validate_config(data)
        try:
            return cls.from_dict(data)
        except TypeError as e:
            raise ConfigurationError(f"配置欄位型別錯誤 {config_path}: {e}") from e

    @staticmethod
    def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """遞迴合併，override 優先；不修改輸入"""
        merged = deepcopy(base)
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = AppConfig._deep_merge(current, value)
            else:
                merged[key] = deepcopy(value)
        return merged

    @staticmethod
    def _validate_config(data: Any) -> None:
        """檢查 layout 的計時設定"""
        if not isinstance(data, dict):
            raise ConfigurationError("配置必須是字典格式")

        layout = data.get("layout") or {}
        if not isinstance(layout, dict):
            raise ConfigurationError("layout 區段必須是字典格式")

        debounce_ms = layout.get("debounce_ms", 100)
        if isinstance(debounce_ms, bool) or not isinstance(debounce_ms, int) or debounce_ms <= 0:
            raise ConfigurationError(f"layout.debounce_ms 必須是正整數: {debounce_ms}")
        for delay in layout.get("delayed_sweeps_ms") or []:
            if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
                raise ConfigurationError(f"layout.delayed_sweeps_ms 含有無效延遲: {delay}")

        plugin = data.get("plugin") or {}
        if isinstance(plugin, dict):
            custom_mode = plugin.get("enable_custom_mode", plugin.get("enableCustomMode", False))
            config_url = plugin.get("sticker_config_url", plugin.get("stickerConfigUrl", ""))
            if not custom_mode and not config_url:
                logging.info("未設置 sticker_config_url，將使用內建預設表情")

    @classmethod
    def _dict_to_dataclass(cls, data: Any, dataclass_type):
        """依欄位型別把字典轉成 dataclass，巢狀區段遞迴處理

        未知欄位只記錄警告，插件欄位接受 camelCase 名稱。
        """
        if not isinstance(data, dict):
            return data

        known = {f.name: f.type for f in fields(dataclass_type)}
        values = {}
        for key, value in data.items():
            name = PLUGIN_FIELD_MAPPINGS.get(key, key)
            if name not in known:
                logging.warning(f"忽略未知的配置欄位: {dataclass_type.__name__}.{key}")
                continue
            field_type = known[name]
            if is_dataclass(field_type):
                values[name] = cls._dict_to_dataclass(value or {}, field_type)
            else:
                values[name] = value
        return dataclass_type(**values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        return cls._dict_to_dataclass(data, cls)

    def to_dict(self) -> Dict[str, Any]:
        """轉換為與 config.yaml 相同結構的字典"""
        return asdict(self)
