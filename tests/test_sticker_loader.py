"""
表情目錄載入測試

使用 httpx.MockTransport 模擬設定端點與目錄 URL，
測試載入來源的優先順序、失敗退回預設目錄與狀態通知。
"""

import json

import httpx
import pytest
from unittest.mock import MagicMock

from schemas.config_types import LoaderConfig, PluginConfig
from schemas.sticker_types import StickerGroup
from sticker_catalog import CatalogStore, StickerLoader, default_sticker_groups

CONFIG_MAP_PATH = LoaderConfig().config_map_path
CUSTOM_PATH = LoaderConfig().custom_stickers_path
REMOTE_URL = "https://cdn.test/owo.json"

OWO = {
    "阿鲁": {
        "type": "image",
        "container": [{"icon": '<img src="//cdn.test/a.png">', "text": "happy"}],
    },
    "颜文字": {"type": "emoticon", "container": [{"icon": "^_^", "text": "smile"}]},
}


def _config_map(**basic) -> dict:
    return {"data": {"basic": json.dumps(basic)}}


class FakeBackend:
    """依路徑回應的假後端，並記錄請求"""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        key = request.url.path if request.url.host == "backend.test" else str(request.url)
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)


def _client(backend: FakeBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend), base_url="http://backend.test")


def _default_names():
    return [group.name for group in default_sticker_groups()]


class TestStickerLoader:
    """測試 StickerLoader"""

    async def test_load_from_remote_url(self):
        backend = FakeBackend({
            CONFIG_MAP_PATH: _config_map(stickerConfigUrl=REMOTE_URL),
            REMOTE_URL: OWO,
        })
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client)
            await loader.load_stickers()

        assert [group.name for group in loader.groups] == ["阿鲁", "颜文字"]
        assert loader.groups[0].stickers[0].origin_url == "https://cdn.test/a.png"
        assert loader.store.loaded is True
        assert loader.store.loading is False
        assert loader.plugin_config.sticker_config_url == REMOTE_URL

    async def test_explicit_url_wins_over_plugin_config(self):
        backend = FakeBackend({
            CONFIG_MAP_PATH: _config_map(stickerConfigUrl="https://cdn.test/other.json"),
            REMOTE_URL: OWO,
        })
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client)
            await loader.load_stickers(REMOTE_URL)

        assert len(loader.groups) == 2
        assert "https://cdn.test/other.json" not in backend.requests

    async def test_custom_mode_reads_stored_json_string(self):
        """自訂資料端點回傳的是 JSON 字串，需要再解析一次"""
        backend = FakeBackend({
            CONFIG_MAP_PATH: _config_map(enableCustomMode=True, stickerConfigUrl=REMOTE_URL),
            CUSTOM_PATH: json.dumps({"mine": {"wave": "https://cdn.test/wave.gif"}}),
        })
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client)
            await loader.load_stickers()

        assert [group.name for group in loader.groups] == ["mine"]
        assert loader.groups[0].stickers[0].shortcode == ":mine_wave:"
        assert REMOTE_URL not in backend.requests

    async def test_custom_mode_failure_falls_through_to_url(self):
        backend = FakeBackend({
            CONFIG_MAP_PATH: _config_map(enableCustomMode=True, stickerConfigUrl=REMOTE_URL),
            CUSTOM_PATH: httpx.Response(500),
            REMOTE_URL: OWO,
        })
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client)
            await loader.load_stickers()

        assert [group.name for group in loader.groups] == ["阿鲁", "颜文字"]

    async def test_no_url_uses_defaults(self):
        backend = FakeBackend({CONFIG_MAP_PATH: _config_map(stickerStyle="width:2em")})
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client)
            await loader.load_stickers()

        assert [group.name for group in loader.groups] == _default_names()

    async def test_missing_config_map_uses_defaults(self):
        backend = FakeBackend({})
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client)
            await loader.load_stickers()

        assert [group.name for group in loader.groups] == _default_names()
        assert loader.store.loaded is True

    @pytest.mark.parametrize("response", [
        httpx.Response(500),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"g": {"type": "image", "container": "oops"}}),
    ])
    async def test_remote_failure_falls_back_to_defaults(self, response):
        backend = FakeBackend({REMOTE_URL: response})
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client, plugin_config=PluginConfig(sticker_config_url=REMOTE_URL))
            await loader.load_stickers()

        assert [group.name for group in loader.groups] == _default_names()
        assert loader.store.loading is False

    async def test_empty_catalog_is_not_replaced_by_defaults(self):
        backend = FakeBackend({REMOTE_URL: {}})
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client, plugin_config=PluginConfig(sticker_config_url=REMOTE_URL))
            await loader.load_stickers()

        assert loader.groups == ()
        assert loader.store.loaded is True

    async def test_load_is_skipped_when_already_loaded(self):
        backend = FakeBackend({REMOTE_URL: OWO})
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client, plugin_config=PluginConfig(sticker_config_url=REMOTE_URL))
            await loader.load_stickers()
            await loader.load_stickers()

        assert backend.requests.count(REMOTE_URL) == 1

    async def test_reload_fetches_again(self):
        backend = FakeBackend({REMOTE_URL: OWO})
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client, plugin_config=PluginConfig(sticker_config_url=REMOTE_URL))
            await loader.load_stickers()
            backend.routes[REMOTE_URL] = {"新": {"x": "https://cdn.test/x.png"}}
            await loader.reload_stickers()

        assert backend.requests.count(REMOTE_URL) == 2
        assert [group.name for group in loader.groups] == ["新"]

    async def test_load_plugin_config_failure_returns_empty(self):
        backend = FakeBackend({CONFIG_MAP_PATH: {"data": {"basic": "{broken"}}})
        async with _client(backend) as client:
            loader = StickerLoader(http_client=client)
            config = await loader.load_plugin_config()

        assert config.is_empty()

    def test_editor_flags_default_to_enabled(self):
        loader = StickerLoader(
            http_client=MagicMock(),
            plugin_config=PluginConfig(enable_vditor_editor=False, enable_bytemd_editor=True),
        )

        assert loader.is_default_editor_enabled() is True
        assert loader.is_vditor_editor_enabled() is False
        assert loader.is_bytemd_editor_enabled() is True
        assert loader.is_willow_editor_enabled() is True


class TestCatalogStore:
    """測試 CatalogStore"""

    def test_replace_notifies_subscribers(self):
        store = CatalogStore()
        received = []
        store.subscribe(received.append)

        groups = [StickerGroup(name="a")]
        store.replace(groups)

        assert received == [tuple(groups)]
        assert store.groups == tuple(groups)

    def test_unsubscribe(self):
        store = CatalogStore()
        callback = MagicMock()
        unsubscribe = store.subscribe(callback)
        unsubscribe()
        unsubscribe()

        store.replace([StickerGroup(name="a")])

        callback.assert_not_called()

    def test_failing_subscriber_does_not_block_others(self):
        store = CatalogStore()
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        store.subscribe(failing)
        store.subscribe(healthy)

        store.replace([StickerGroup(name="a")])

        healthy.assert_called_once()

    def test_snapshot_is_not_mutated_by_source_list(self):
        groups = [StickerGroup(name="a")]
        store = CatalogStore(groups)
        groups.append(StickerGroup(name="b"))

        assert len(store.groups) == 1
