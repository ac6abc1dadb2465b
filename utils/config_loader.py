"""
配置載入器

提供兩種存取方式並共用快取：
- 字典格式（load_config），供日誌初始化與點記法查詢使用
- 型別安全格式（load_typed_config），供表情目錄與版面模組使用

兩者都以同目錄的 config-example.yaml 為預設值，檔案不存在時不視為錯誤。
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from schemas.config_types import AppConfig, LayoutConfig, PluginConfig

EXAMPLE_CONFIG_NAME = "config-example.yaml"

# 全域配置快取
_config_cache: Optional[AppConfig] = None
_dict_cache: Optional[Dict[str, Any]] = None
_config_path_cache: Optional[str] = None


def _read_yaml(path: Path) -> Dict[str, Any]:
    """讀取 YAML 檔案，不存在或內容為空時返回空字典"""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(f"{path} 的頂層必須是映射")
    return data


def load_config(filename: str = "config.yaml") -> Dict[str, Any]:
    """載入配置檔案（字典格式）

    Args:
        filename: 配置檔案路徑

    Returns:
        Dict[str, Any]: 以 config-example.yaml 為底合併後的配置，兩者都不存在時為空字典
    """
    global _dict_cache, _config_path_cache

    if _dict_cache is not None and _config_path_cache == filename:
        return _dict_cache

    config_file = Path(filename)
    example_file = config_file.resolve().parent / EXAMPLE_CONFIG_NAME

    defaults: Dict[str, Any] = {}
    if example_file.resolve() != config_file.resolve():
        try:
            defaults = _read_yaml(example_file)
        except Exception as e:
            logging.warning(f"讀取預設配置 {example_file} 失敗: {e}")

    try:
        overrides = _read_yaml(config_file)
    except Exception as e:
        logging.error(f"讀取配置 {filename} 失敗，只使用預設配置: {e}")
        return defaults

    if not config_file.exists():
        logging.info(f"找不到配置 {filename}，只使用預設配置")

    config = AppConfig._deep_merge(defaults, overrides) if defaults else overrides
    _dict_cache = config
    _config_path_cache = filename
    logging.debug(f"配置載入完成: {filename}")
    return config


def load_typed_config(config_path: str = "config.yaml", force_reload: bool = False) -> AppConfig:
    """載入型別安全的配置

    Args:
        config_path: 配置檔案路徑
        force_reload: 忽略快取重新讀取

    Returns:
        AppConfig: 配置實例，檔案不存在或內容無效時返回預設配置
    """
    global _config_cache, _config_path_cache

    if not force_reload and _config_cache is not None and _config_path_cache == config_path:
        return _config_cache

    try:
        config = AppConfig.from_yaml(config_path)
    except Exception as e:
        logging.error(f"型別安全配置載入失敗，改用預設配置: {e}")
        config = AppConfig()

    _config_cache = config
    _config_path_cache = config_path
    return config


def get_layout_config(config_path: str = "config.yaml") -> LayoutConfig:
    return load_typed_config(config_path).layout


def get_plugin_config(config_path: str = "config.yaml") -> PluginConfig:
    return load_typed_config(config_path).plugin


def reload_config(filename: str = "config.yaml") -> Dict[str, Any]:
    """清除快取後重新載入字典配置"""
    clear_config_cache()
    return load_config(filename)


def clear_config_cache() -> None:
    global _config_cache, _dict_cache, _config_path_cache
    _config_cache = None
    _dict_cache = None
    _config_path_cache = None


def get_config_value(key_path: str, default: Any = None, config_path: str = "config.yaml") -> Any:
    """以點記法讀取配置值，例如 "layout.debounce_ms"；路徑不存在時返回 default"""
    node: Any = load_config(config_path)
    for key in key_path.split("."):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node
