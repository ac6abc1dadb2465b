"""
短代碼與 URL 工具

提供分組前綴、短代碼產生與協議相對 URL 補全等純函數。
"""

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_url(url: str) -> str:
    """將協議相對 URL（//cdn/a.png）補全為 https，其餘原樣返回"""
    if url.startswith("//"):
        return "https:" + url
    return url


def generate_prefix(group_name: str) -> str:
    """直接使用分組名作為前綴，只把連續空白替換為底線"""
    return _WHITESPACE_RE.sub("_", group_name)


def build_shortcode(prefix: str, name: str) -> str:
    """產生 :prefix_name: 格式的短代碼"""
    return f":{prefix}_{name}:"
