"""
命令列渲染流程測試
"""

import json

import pytest

from main import load_catalog_file, main
from sticker_catalog import default_sticker_groups
from utils.config_loader import clear_config_cache


@pytest.fixture(autouse=True)
def _clean_cache():
    clear_config_cache()
    yield
    clear_config_cache()


class TestMain:
    """測試 main 流程"""

    async def test_renders_shortcodes_and_classifies(self, tmp_path):
        catalog = tmp_path / "owo.json"
        catalog.write_text(json.dumps({"alu": {"smile": "https://cdn.test/smile.png"}}), encoding="utf-8")
        source = tmp_path / "post.html"
        source.write_text("<p>:alu_smile:</p><p>hello :alu_smile: :unknown:</p>", encoding="utf-8")

        target = await main(str(source), catalog_path=str(catalog), config_path=str(tmp_path / "config.yaml"))

        assert target.name == "post.stickers.html"
        output = target.read_text(encoding="utf-8")
        assert output.count("sticker-emoji") == 2
        assert "sticker-solo-container" in output
        assert "max-width: 64px !important" in output
        assert ":unknown:" in output

    async def test_missing_input_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            await main(str(tmp_path / "missing.html"), config_path=str(tmp_path / "config.yaml"))

    def test_invalid_catalog_file_falls_back_to_defaults(self, tmp_path):
        catalog = tmp_path / "broken.json"
        catalog.write_text("{oops", encoding="utf-8")

        groups = load_catalog_file(str(catalog))

        assert [group.name for group in groups] == [group.name for group in default_sticker_groups()]
