"""
表情目錄解析測試

測試兩種目錄格式的解析、短代碼產生與 URL 補全。
"""

import pytest

from schemas.sticker_types import CatalogFormatError, Sticker, StickerGroup
from sticker_catalog.ingestion import ingest, parse_owo_config, to_shortcode_map
from sticker_catalog.defaults import default_sticker_groups
from sticker_catalog.shortcode import build_shortcode, generate_prefix, normalize_url


class TestShortcodeHelpers:
    """測試短代碼與 URL 工具函數"""

    def test_normalize_protocol_relative_url(self):
        assert normalize_url("//cdn/a.png") == "https://cdn/a.png"

    def test_normalize_keeps_other_urls(self):
        assert normalize_url("http://x/a.png") == "http://x/a.png"
        assert normalize_url("/static/a.png") == "/static/a.png"
        assert normalize_url("") == ""

    def test_generate_prefix_collapses_whitespace(self):
        """連續空白只變成一個底線，其餘字元保留"""
        assert generate_prefix("阿 鲁") == "阿_鲁"
        assert generate_prefix("my   cute\tcats") == "my_cute_cats"
        assert generate_prefix("alu") == "alu"

    def test_build_shortcode(self):
        assert build_shortcode("alu", "暗地观察") == ":alu_暗地观察:"


class TestFlatMapFormat:
    """測試舊版扁平格式"""

    def test_image_url_entry(self):
        groups = parse_owo_config({"alu": {"smile": "https://x/a.png"}})

        assert len(groups) == 1
        assert groups[0].name == "alu"
        assert groups[0].prefix == "alu"
        sticker = groups[0].stickers[0]
        assert sticker.url == "https://x/a.png"
        assert sticker.origin_url == "https://x/a.png"
        assert sticker.alt == "smile"
        assert sticker.shortcode == ":alu_smile:"

    def test_relative_path_is_image(self):
        groups = parse_owo_config({"g": {"wave": "/upload/wave.gif"}})
        assert groups[0].stickers[0].shortcode == ":g_wave:"
        assert groups[0].stickers[0].url == "/upload/wave.gif"

    def test_literal_text_entry(self):
        """非 URL 的值視為文字，短代碼就是文字本身"""
        groups = parse_owo_config({"text": {"lol": "XD"}})

        sticker = groups[0].stickers[0]
        assert sticker.name == "lol"
        assert sticker.url == ""
        assert sticker.alt == "XD"
        assert sticker.shortcode == "XD"
        assert not sticker.is_image

    def test_non_string_value_is_literal(self):
        groups = parse_owo_config({"nums": {"one": 1}})
        assert groups[0].stickers[0].shortcode == "1"
        assert groups[0].stickers[0].url == ""

    def test_group_name_with_spaces_prefix(self):
        groups = parse_owo_config({"My Pack": {"hi": "https://x/hi.png"}})
        assert groups[0].name == "My Pack"
        assert groups[0].stickers[0].shortcode == ":My_Pack_hi:"


class TestTypedGroupFormat:
    """測試 OwO 分組格式"""

    def test_image_group_origin_and_src(self):
        raw = {
            "阿鲁": {
                "type": "image",
                "container": [
                    {"icon": '<img src="//cdn/a.png" origin="//cdn/orig.png">', "text": "happy"},
                ],
            }
        }
        sticker = parse_owo_config(raw)[0].stickers[0]

        assert sticker.origin_url == "https://cdn/orig.png"
        assert sticker.url == "https://cdn/a.png"
        assert sticker.shortcode == ":阿鲁_happy:"
        assert sticker.name == "happy"
        assert sticker.alt == "happy"

    def test_image_group_src_only(self):
        raw = {"g": {"type": "image", "container": [{"icon": "<img src='https://cdn/b.png'>", "text": "b"}]}}
        sticker = parse_owo_config(raw)[0].stickers[0]
        assert sticker.origin_url == "https://cdn/b.png"
        assert sticker.url == "https://cdn/b.png"

    def test_image_group_origin_only(self):
        raw = {"g": {"type": "image", "container": [{"icon": '<img origin="//cdn/o.png">', "text": "o"}]}}
        sticker = parse_owo_config(raw)[0].stickers[0]
        assert sticker.origin_url == "https://cdn/o.png"
        assert sticker.url == "https://cdn/o.png"

    def test_image_group_without_urls(self):
        raw = {"g": {"type": "image", "container": [{"icon": "<span>no image</span>", "text": "x"}]}}
        sticker = parse_owo_config(raw)[0].stickers[0]
        assert sticker.url == ""
        assert sticker.origin_url == ""
        assert sticker.shortcode == ":g_x:"

    def test_emoticon_group(self):
        raw = {"颜文字": {"type": "emoticon", "container": [{"icon": "(⌐■_■)", "text": "cool"}]}}
        sticker = parse_owo_config(raw)[0].stickers[0]

        assert sticker.name == "(⌐■_■)"
        assert sticker.alt == "(⌐■_■)"
        assert sticker.shortcode == "(⌐■_■)"
        assert sticker.url == ""

    def test_mixed_shapes_in_one_document(self):
        """格式偵測以分組為單位"""
        raw = {
            "typed": {"type": "emoticon", "container": [{"icon": "^_^", "text": ""}]},
            "flat": {"a": "https://x/a.png"},
        }
        groups = parse_owo_config(raw)
        assert [group.name for group in groups] == ["typed", "flat"]
        assert groups[0].stickers[0].shortcode == "^_^"
        assert groups[1].stickers[0].shortcode == ":flat_a:"


class TestOrderingAndEmptiness:
    """測試順序保證與空輸入"""

    def test_empty_input_returns_empty_list(self):
        assert parse_owo_config({}) == []
        assert ingest({}) == []
        assert parse_owo_config(None) == []

    def test_empty_group_is_emitted(self):
        groups = parse_owo_config({"empty": {}, "typed_empty": {"type": "image", "container": []}})
        assert [group.name for group in groups] == ["empty", "typed_empty"]
        assert all(len(group) == 0 for group in groups)

    def test_order_is_preserved(self):
        raw = {
            "z": {"b": "https://x/b.png", "a": "https://x/a.png"},
            "a": {"y": "Y", "x": "X"},
        }
        groups = parse_owo_config(raw)
        assert [group.name for group in groups] == ["z", "a"]
        assert [s.name for s in groups[0].stickers] == ["b", "a"]
        assert [s.name for s in groups[1].stickers] == ["y", "x"]


class TestMalformedInput:
    """測試結構錯誤時整份解析失敗"""

    @pytest.mark.parametrize("raw", [[], "", 0, ["g"]])
    def test_non_mapping_input_raises(self, raw):
        """空的非物件輸入也不會被當成空目錄"""
        with pytest.raises(CatalogFormatError):
            parse_owo_config(raw)

    def test_container_not_list(self):
        with pytest.raises(CatalogFormatError):
            parse_owo_config({"g": {"type": "image", "container": "oops"}})

    def test_non_string_icon(self):
        with pytest.raises(CatalogFormatError):
            parse_owo_config({"g": {"type": "image", "container": [{"icon": 42, "text": "x"}]}})

    def test_missing_text(self):
        with pytest.raises(CatalogFormatError):
            parse_owo_config({"g": {"type": "image", "container": [{"icon": "<img src='a'>"}]}})

    def test_item_not_mapping(self):
        with pytest.raises(CatalogFormatError):
            parse_owo_config({"g": {"type": "emoticon", "container": ["^_^"]}})

    def test_group_payload_not_mapping(self):
        with pytest.raises(CatalogFormatError):
            parse_owo_config({"g": "https://x/a.png"})

    def test_invalid_entry_aborts_whole_call(self):
        raw = {
            "good": {"a": "https://x/a.png"},
            "bad": {"type": "image", "container": None},
        }
        with pytest.raises(CatalogFormatError):
            parse_owo_config(raw)


class TestShortcodeMap:
    """測試短代碼映射攤平"""

    def test_only_image_stickers_are_mapped(self):
        groups = parse_owo_config({
            "g": {"a": "https://x/a.png", "lol": "XD"},
            "t": {"type": "image", "container": [{"icon": '<img src="//c/s.png" origin="//c/o.png">', "text": "o"}]},
        })
        assert to_shortcode_map(groups) == {
            ":g_a:": "https://x/a.png",
            ":t_o:": "https://c/o.png",
        }

    def test_duplicate_shortcode_last_write_wins(self):
        groups = [
            StickerGroup(name="a", prefix="a", stickers=[Sticker(name="x", url="https://1", shortcode=":a_x:")]),
            StickerGroup(name="b", prefix="b", stickers=[Sticker(name="x", url="https://2", shortcode=":a_x:")]),
        ]
        assert to_shortcode_map(groups) == {":a_x:": "https://2"}


class TestDefaultCatalog:
    """測試內建預設目錄"""

    def test_group_names(self):
        groups = default_sticker_groups()
        assert [group.name for group in groups] == ["Emoji", "颜文字"]
        assert len(groups[0]) == 24
        assert len(groups[1]) == 16

    def test_each_call_returns_new_list(self):
        assert default_sticker_groups() is not default_sticker_groups()
