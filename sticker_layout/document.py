"""
可觀察的 HTML 文件

以 BeautifulSoup 樹表示已渲染的頁面內容。宿主程式透過這裡的變更 API
插入/移除節點或修改文字，文件會產生 MutationRecord 並通知觀察者；
同時提供簡單的事件分派（DOMContentLoaded、導航完成、visibilitychange）。

屬性修改（class、style）不經過變更 API，因此版面分類寫回的標記
不會再觸發觀察者，避免回饋迴圈。
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, Tag

CHILD_LIST = "childList"
CHARACTER_DATA = "characterData"


@dataclass
class MutationRecord:
    """單筆變更紀錄"""
    type: str
    target: PageElement
    added_nodes: List[PageElement] = field(default_factory=list)
    removed_nodes: List[PageElement] = field(default_factory=list)


MutationCallback = Callable[[List[MutationRecord]], None]
EventListener = Callable[[str], None]


def contains(root: PageElement, node: Optional[PageElement]) -> bool:
    """root 是否為 node 本身或其祖先"""
    if node is None:
        return False
    if node is root:
        return True
    return any(parent is root for parent in node.parents)


class Observation:
    """一個觀察者及其觀察範圍"""

    def __init__(self, document: "StickerDocument", callback: MutationCallback, roots: List[PageElement]):
        self._document = document
        self.callback = callback
        self.roots = roots

    def matches(self, record: MutationRecord) -> bool:
        return any(contains(root, record.target) for root in self.roots)

    def disconnect(self) -> None:
        self._document._remove_observation(self)


class StickerDocument:
    """
    可觀察的文件

    Attributes:
        soup: 文件樹
        ready_state: "loading" 或 "complete"
        hidden: 頁面是否處於隱藏狀態
    """

    def __init__(self, markup: str = "", ready: bool = True, parser: str = "html.parser"):
        self.logger = logging.getLogger(__name__)
        self.parser = parser
        self.soup = BeautifulSoup(markup, parser)
        self.ready_state = "complete" if ready else "loading"
        self.hidden = False
        self._listeners: Dict[str, List[EventListener]] = {}
        self._observations: List[Observation] = []
        self._pending: Optional[List[MutationRecord]] = None

    @property
    def is_ready(self) -> bool:
        return self.ready_state != "loading"

    @property
    def root_element(self) -> Optional[Tag]:
        return self.soup.find("html")

    @property
    def body(self) -> PageElement:
        """body 元素；片段文件沒有 body 時返回整棵樹"""
        return self.soup.body or self.soup

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def to_html(self) -> str:
        return str(self.soup)

    # ---- 事件 ----

    def add_event_listener(self, event_name: str, listener: EventListener) -> None:
        self._listeners.setdefault(event_name, []).append(listener)

    def remove_event_listener(self, event_name: str, listener: EventListener) -> None:
        listeners = self._listeners.get(event_name, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch_event(self, event_name: str) -> int:
        """
        分派事件給所有監聽者

        Returns:
            int: 被呼叫的監聽者數量
        """
        listeners = list(self._listeners.get(event_name, []))
        for listener in listeners:
            listener(event_name)
        return len(listeners)

    def mark_ready(self) -> None:
        """文件解析完成"""
        if self.ready_state == "loading":
            self.ready_state = "complete"
            self.dispatch_event("DOMContentLoaded")

    def set_hidden(self, hidden: bool) -> None:
        self.hidden = hidden
        self.dispatch_event("visibilitychange")

    # ---- 變更觀察 ----

    def observe(self, callback: MutationCallback, roots: Iterable[PageElement]) -> Observation:
        """註冊觀察者，範圍內（含子樹）的變更會以批次通知"""
        observation = Observation(self, callback, list(roots))
        self._observations.append(observation)
        return observation

    def _remove_observation(self, observation: Observation) -> None:
        if observation in self._observations:
            self._observations.remove(observation)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """在區塊內累積變更，結束時一次通知"""
        if self._pending is not None:
            yield
            return
        self._pending = []
        try:
            yield
        finally:
            records, self._pending = self._pending, None
            self._deliver(records)

    def _record(self, record: MutationRecord) -> None:
        if self._pending is not None:
            self._pending.append(record)
        else:
            self._deliver([record])

    def _deliver(self, records: List[MutationRecord]) -> None:
        if not records:
            return
        for observation in list(self._observations):
            matched = [record for record in records if observation.matches(record)]
            if matched:
                observation.callback(matched)

    # ---- 變更 API ----

    def _parse_fragment(self, markup: str) -> List[PageElement]:
        fragment = BeautifulSoup(markup, self.parser)
        return [node.extract() for node in list(fragment.contents)]

    def append_html(self, target: Tag, markup: str) -> List[PageElement]:
        """把 HTML 片段附加到 target 末端"""
        nodes = self._parse_fragment(markup)
        for node in nodes:
            target.append(node)
        self._record(MutationRecord(CHILD_LIST, target, added_nodes=nodes))
        return nodes

    def insert_html(self, target: Tag, index: int, markup: str) -> List[PageElement]:
        """把 HTML 片段插入 target 的指定位置"""
        nodes = self._parse_fragment(markup)
        for offset, node in enumerate(nodes):
            target.insert(index + offset, node)
        self._record(MutationRecord(CHILD_LIST, target, added_nodes=nodes))
        return nodes

    def replace_children(self, target: Tag, markup: str) -> List[PageElement]:
        """以新的 HTML 取代 target 的全部子節點（例如客戶端導航換頁）"""
        removed = [node.extract() for node in list(target.contents)]
        nodes = self._parse_fragment(markup)
        for node in nodes:
            target.append(node)
        self._record(MutationRecord(CHILD_LIST, target, added_nodes=nodes, removed_nodes=removed))
        return nodes

    def remove(self, node: PageElement) -> None:
        parent = node.parent
        if parent is None:
            return
        node.extract()
        self._record(MutationRecord(CHILD_LIST, parent, removed_nodes=[node]))

    def set_text(self, node: NavigableString, text: str) -> NavigableString:
        """修改文字節點內容"""
        replacement = NavigableString(text)
        node.replace_with(replacement)
        self._record(MutationRecord(CHARACTER_DATA, replacement))
        return replacement
