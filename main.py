"""
表情渲染主要入口點

讀取 HTML 檔案，將短代碼替換為表情圖片，執行一次版面分類後輸出結果。
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from schemas.config_types import AppConfig
from schemas.sticker_types import StickerGroup
from sticker_catalog import CatalogStore, StickerLoader, parse_owo_config, replace_shortcodes, to_shortcode_map
from sticker_catalog.defaults import default_sticker_groups
from sticker_layout import StickerDocument, StickerProcessor
from utils.config_loader import load_config, load_typed_config
from utils.logger import setup_logger


def load_catalog_file(catalog_path: str) -> List[StickerGroup]:
    """從本地 JSON 檔案載入目錄，失敗時使用預設目錄"""
    try:
        with open(catalog_path, "r", encoding="utf-8") as f:
            return parse_owo_config(json.load(f))
    except Exception as e:
        logging.error(f"載入表情目錄 {catalog_path} 失敗，使用預設表情: {e}")
        return default_sticker_groups()


async def load_catalog(config: AppConfig, catalog_path: Optional[str] = None) -> List[StickerGroup]:
    """依參數或插件配置取得表情目錄"""
    if catalog_path:
        return load_catalog_file(catalog_path)

    store = CatalogStore()
    async with StickerLoader(store, config.loader, plugin_config=config.plugin) as loader:
        await loader.load_stickers()
    return list(store.groups)


async def main(
    input_path: str,
    output_path: Optional[str] = None,
    catalog_path: Optional[str] = None,
    config_path: str = "config.yaml",
) -> Path:
    """
    表情渲染流程

    Args:
        input_path: 輸入 HTML 檔案
        output_path: 輸出檔案，預設為 <輸入檔名>.stickers.html
        catalog_path: 本地目錄 JSON，未提供時依插件配置載入
        config_path: 配置文件路徑

    Returns:
        Path: 輸出檔案路徑
    """
    setup_logger(load_config(config_path))
    config = load_typed_config(config_path)

    source = Path(input_path)
    if not source.exists():
        raise FileNotFoundError(f"HTML file not found: {source}")

    groups = await load_catalog(config, catalog_path)
    sticker_map = to_shortcode_map(groups)
    logging.info(f"📦 目錄共有 {len(groups)} 個分組、{len(sticker_map)} 個圖片短代碼")

    content = replace_shortcodes(source.read_text(encoding="utf-8"), sticker_map, config.plugin.sticker_style)

    document = StickerDocument(content)
    stats = StickerProcessor(document, config.layout).process_all()
    logging.info(f"🎨 版面分類完成: {stats.images} 張區塊表情（{stats.solo_images} 張 solo），"
                 f"{stats.standalone_images} 張獨立表情")

    target = Path(output_path) if output_path else source.with_suffix(".stickers.html")
    target.write_text(document.to_html(), encoding="utf-8")
    logging.info(f"✅ 已輸出 {target}")
    return target


def run(argv: List[str]) -> None:
    """命令列: main.py <input.html> [output.html] [catalog.json] [config.yaml]"""
    if not argv:
        print("用法: python main.py <input.html> [output.html] [catalog.json] [config.yaml]")
        return

    input_path = argv[0]
    output_path = argv[1] if len(argv) > 1 else None
    catalog_path = argv[2] if len(argv) > 2 else None
    config_path = argv[3] if len(argv) > 3 else "config.yaml"

    try:
        asyncio.run(main(input_path, output_path, catalog_path, config_path))
    except KeyboardInterrupt:
        logging.info("👋 收到中斷信號，正在關閉...")
    except Exception as e:
        logging.exception(f"❌ 表情渲染失敗: {e}")


if __name__ == "__main__":
    import sys

    run(sys.argv[1:])
