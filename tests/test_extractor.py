"""Tests for forum page parsing and the source client."""
import asyncio

import aiohttp
import pytest

from src.domain import RemoteFetchError
from src.source import ThreadListExtractor, TiebaClient


THREAD = """
<li class=" j_thread_list clearfix thread_item_box"
    data-field='{{"id": {tid}, "author_name": "{author}", "reply_num": {replies}}}'>
  <div class="threadlist_title">
    <a rel="noreferrer" href="/p/{tid}" title="{title}" class="j_th_tit ">{title}</a>
  </div>
  {abstract}
  <ul class="threadlist_media j_threadlist_media clearfix">{images}</ul>
</li>
"""


def thread(tid, title, author="someone", replies=3, abstract=None, images=(), top=False):
    html = THREAD.format(
        tid=tid,
        title=title,
        author=author,
        replies=replies,
        abstract=f'<div class="threadlist_abs threadlist_abs_onlyline ">{abstract}</div>' if abstract else "",
        images="".join(images),
    )
    if top:
        html = html.replace("j_thread_list clearfix", "thread_top j_thread_list clearfix")
    return html


def img(bpic=None, original=None, src=None):
    attrs = " ".join(
        f'{name}="{value}"'
        for name, value in (("bpic", bpic), ("data-original", original), ("src", src))
        if value is not None
    )
    return f'<li><a class="thumbnail vpic_wrap"><img {attrs} class="threadlist_pic j_m_pic "/></a></li>'


def page(*threads, commented=False):
    body = '<ul id="thread_list" class="threadlist_bright j_threadlist_bright">' + "".join(threads) + "</ul>"
    if commented:
        body = f'<code id="pagelet_html_frs-list/pagelet/thread_list" style="display:none;"><!--{body}--></code>'
    return f"<html><body>{body}</body></html>"


class TestThreadListExtractor:
    """ThreadListExtractor.extract_items"""

    def test_extracts_fields(self):
        """Test title, link, author, replies, abstract and images are read."""
        html = page(thread(
            101, "第一帖", author="楼主", replies=42, abstract="这是摘要",
            images=[img(bpic="https://tiebapic.baidu.com/forum/pic/item/big.jpg",
                        original="https://tiebapic.baidu.com/forum/w%3D200/small.jpg")],
        ))

        [item] = ThreadListExtractor().extract_items(html)

        assert item.title == "第一帖"
        assert item.link == "https://tieba.baidu.com/p/101"
        assert item.author == "楼主"
        assert item.reply_count == 42
        assert item.abstract == "这是摘要"
        assert item.image_urls == ["https://tiebapic.baidu.com/forum/pic/item/big.jpg"]
        assert item.images_downloaded is None

    def test_image_fallbacks(self):
        """Test data-original and protocol-relative src are used when bpic is missing."""
        html = page(thread(1, "t", images=[
            img(original="https://a.example.com/1.jpg"),
            img(src="//a.example.com/2.jpg"),
            img(src="data:image/gif;base64,AAAA"),
            img(original="https://a.example.com/1.jpg"),
        ]))

        [item] = ThreadListExtractor().extract_items(html)

        assert item.image_urls == ["https://a.example.com/1.jpg", "https://a.example.com/2.jpg"]

    def test_commented_list(self):
        """Test threads hidden in an HTML comment are found."""
        html = page(thread(1, "a"), thread(2, "b"), commented=True)

        items = ThreadListExtractor().extract_items(html)

        assert [i.title for i in items] == ["a", "b"]

    def test_pinned_skipped_and_limit(self):
        """Test pinned threads are skipped and max_items is honoured."""
        html = page(thread(1, "pinned", top=True), thread(2, "a"), thread(3, "b"), thread(4, "c"))

        items = ThreadListExtractor().extract_items(html, max_items=2)

        assert [i.title for i in items] == ["a", "b"]

    def test_no_abstract(self):
        """Test a thread without abstract has None."""
        [item] = ThreadListExtractor().extract_items(page(thread(1, "a")))
        assert item.abstract is None
        assert item.image_urls == []

    def test_has_thread_list(self):
        """Test list pages are told apart from other pages."""
        assert ThreadListExtractor.has_thread_list(page())
        assert not ThreadListExtractor.has_thread_list("<html><body>请输入验证码</body></html>")


class FakePageFetcher:
    def __init__(self, html=None, error=None):
        self.html = html
        self.error = error
        self.requests = []

    async def get_text(self, url, params=None):
        self.requests.append((url, params))
        if self.error:
            raise self.error
        return self.html


class TestTiebaClient:
    """TiebaClient.fetch"""

    def test_fetch(self):
        """Test the forum page is requested and parsed."""
        fetcher = FakePageFetcher(page(thread(1, "a"), thread(2, "b")))
        client = TiebaClient(fetcher, base_url="https://tieba.example.com/")

        items = asyncio.run(client.fetch("李毅", 1))

        assert [i.title for i in items] == ["a"]
        assert fetcher.requests == [("https://tieba.example.com/f", {"kw": "李毅", "ie": "utf-8"})]

    def test_transport_error_wrapped(self):
        """Test network errors become RemoteFetchError."""
        client = TiebaClient(FakePageFetcher(error=aiohttp.ClientConnectionError("down")))

        with pytest.raises(RemoteFetchError):
            asyncio.run(client.fetch("李毅", 10))

    def test_not_a_list_page(self):
        """Test a captcha page is an error rather than an empty forum."""
        client = TiebaClient(FakePageFetcher("<html><body>captcha</body></html>"))

        with pytest.raises(RemoteFetchError):
            asyncio.run(client.fetch("李毅", 10))
