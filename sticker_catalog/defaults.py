"""
內建預設表情目錄

當外部目錄無法取得或解析失敗時使用。
"""

from typing import List

from schemas.sticker_types import Sticker, StickerGroup

_EMOJI = [
    "😀", "😂", "😍", "🤔", "😎", "😢", "😡", "👍",
    "👎", "❤️", "🎉", "🔥", "✨", "💯", "🤣", "😊",
    "🥰", "😘", "🤗", "🤩", "😏", "😒", "🙄", "😴",
]

_KAOMOJI = [
    "(⌐■_■)", "( ´_ゝ`)", "( ͡° ͜ʖ ͡°)", "(╯°□°）╯︵ ┻━┻",
    "┬─┬ノ( º _ ºノ)", "¯\\_(ツ)_/¯", "(ノಠ益ಠ)ノ彡┻━┻", "(づ｡◕‿‿◕｡)づ",
    "(｡◕‿◕｡)", "(╥﹏╥)", "(ಥ_ಥ)", "(◕‿◕)",
    "(｀・ω・´)", "(´・ω・`)", "(=^･ω･^=)", "(●'◡'●)",
]


def _text_group(name: str, texts: List[str]) -> StickerGroup:
    return StickerGroup(
        name=name,
        prefix=name,
        stickers=[Sticker(name=text, url="", alt=text, shortcode=text) for text in texts],
    )


def default_sticker_groups() -> List[StickerGroup]:
    """返回新的預設目錄（每次呼叫建立新列表）"""
    return [
        _text_group("Emoji", _EMOJI),
        _text_group("颜文字", _KAOMOJI),
    ]
