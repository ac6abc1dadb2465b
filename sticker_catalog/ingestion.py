"""
表情目錄解析器

將兩種外部格式轉換為標準化的 StickerGroup 列表：

- OwO 分組格式: {"分組": {"type": "image" | "emoticon", "container": [{"icon": ..., "text": ...}]}}
- 舊版扁平格式: {"分組": {"名稱": "URL 或文字"}}

格式偵測以每個分組為單位，同一份資料可以混用兩種格式。
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from schemas.sticker_types import CatalogFormatError, Sticker, StickerGroup
from .shortcode import build_shortcode, generate_prefix, normalize_url

logger = logging.getLogger(__name__)

_ORIGIN_RE = re.compile(r"""origin=["']([^"']+)["']""")
_SRC_RE = re.compile(r"""src=["']([^"']+)["']""")


def _is_typed_group(group_data: Any) -> bool:
    return isinstance(group_data, Mapping) and "type" in group_data and "container" in group_data


def _extract_urls(icon: str) -> Tuple[str, str]:
    """從 icon HTML 片段中取出 (原圖 URL, 預覽圖 URL)"""
    origin_match = _ORIGIN_RE.search(icon)
    src_match = _SRC_RE.search(icon)
    # 原圖優先取 origin，其次 src
    origin_url = origin_match.group(1) if origin_match else (src_match.group(1) if src_match else "")
    preview_url = src_match.group(1) if src_match else origin_url
    return normalize_url(origin_url), normalize_url(preview_url)


def _container_item(group_name: str, item: Any, *keys: str) -> List[Any]:
    if not isinstance(item, Mapping):
        raise CatalogFormatError(f"分組 {group_name} 的項目必須是物件: {item!r}")
    values = []
    for key in keys:
        if key not in item:
            raise CatalogFormatError(f"分組 {group_name} 的項目缺少 {key} 欄位: {item!r}")
        values.append(item[key])
    return values


def _parse_typed_group(group_name: str, prefix: str, group_data: Mapping) -> List[Sticker]:
    container = group_data["container"]
    if not isinstance(container, list):
        raise CatalogFormatError(f"分組 {group_name} 的 container 必須是陣列")

    is_image = group_data["type"] == "image"
    stickers = []
    for item in container:
        if is_image:
            icon, text = _container_item(group_name, item, "icon", "text")
            if not isinstance(icon, str):
                raise CatalogFormatError(f"分組 {group_name} 的 icon 必須是字串: {icon!r}")
            origin_url, preview_url = _extract_urls(icon)
            stickers.append(Sticker(
                name=str(text),
                url=preview_url,
                origin_url=origin_url,
                alt=str(text),
                shortcode=build_shortcode(prefix, text),
            ))
        else:
            # 顏文字類型 - 直接使用文本，不需要短代碼
            icon, = _container_item(group_name, item, "icon")
            if not isinstance(icon, str):
                raise CatalogFormatError(f"分組 {group_name} 的 icon 必須是字串: {icon!r}")
            stickers.append(Sticker(name=icon, url="", alt=icon, shortcode=icon))
    return stickers


def _parse_flat_group(group_name: str, prefix: str, group_data: Any) -> List[Sticker]:
    if not isinstance(group_data, Mapping):
        raise CatalogFormatError(f"分組 {group_name} 既不是 OwO 格式也不是名稱映射")

    stickers = []
    for name, value in group_data.items():
        is_url = isinstance(value, str) and (value.startswith("http") or value.startswith("/"))
        if is_url:
            stickers.append(Sticker(
                name=name,
                url=value,
                alt=name,
                shortcode=build_shortcode(prefix, name),
            ))
        else:
            text = value if isinstance(value, str) else str(value)
            stickers.append(Sticker(name=name, url="", alt=text, shortcode=text))
    return stickers


def parse_owo_config(owo_data: Optional[Mapping[str, Any]]) -> List[StickerGroup]:
    """
    解析 OwO 格式的配置（支援兩種格式）

    Args:
        owo_data: 分組名稱到分組資料的映射

    Returns:
        List[StickerGroup]: 依輸入順序排列的分組，空輸入返回空列表

    Raises:
        CatalogFormatError: 任一分組結構無效時整份解析失敗
    """
    if owo_data is None:
        return []
    if not isinstance(owo_data, Mapping):
        raise CatalogFormatError(f"表情目錄必須是物件，收到 {type(owo_data).__name__}")
    if not owo_data:
        return []

    groups = []
    for group_name, group_data in owo_data.items():
        prefix = generate_prefix(group_name)
        if _is_typed_group(group_data):
            stickers = _parse_typed_group(group_name, prefix, group_data)
        else:
            stickers = _parse_flat_group(group_name, prefix, group_data)
        groups.append(StickerGroup(name=group_name, prefix=prefix, stickers=stickers))

    logger.debug("解析表情目錄完成: %d 個分組", len(groups))
    return groups


ingest = parse_owo_config


def to_shortcode_map(groups: Iterable[StickerGroup]) -> Dict[str, str]:
    """將圖片表情攤平為 {短代碼: 原圖 URL}，重複的短代碼以後者為準"""
    mapping: Dict[str, str] = {}
    for group in groups:
        for sticker in group.stickers:
            if sticker.is_image and sticker.shortcode:
                mapping[sticker.shortcode] = sticker.origin_url
    return mapping


def count_stickers(groups: Iterable[StickerGroup]) -> int:
    return sum(len(group) for group in groups)
