"""Post extraction from Tieba forum list pages."""
import json
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment

from ..domain import Item


# Element ids/classes that mark a real thread list page
THREAD_LIST_MARKERS = ("thread_list", "j_thread_list")


class ThreadListExtractor:
    """Extract post items from the HTML of a forum's front page."""
    
    def __init__(self, base_url: str = "https://tieba.baidu.com", skip_pinned: bool = True):
        """
        Initialize extractor.
        
        Args:
            base_url: Site root used to absolutize post links
            skip_pinned: Ignore threads pinned by moderators
        """
        self.base_url = base_url.rstrip("/")
        self.skip_pinned = skip_pinned
    
    @staticmethod
    def has_thread_list(html: str) -> bool:
        """Whether the page looks like a forum list at all (not a login/captcha page)."""
        return any(marker in html for marker in THREAD_LIST_MARKERS)
    
    @staticmethod
    def _thread_nodes(soup: BeautifulSoup) -> list:
        """
        Find thread <li> nodes.
        
        The site ships its list inside HTML comments for lazy rendering,
        so commented-out markup is parsed too.
        """
        nodes = soup.select("li.j_thread_list")
        if nodes:
            return nodes
        
        for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
            if "j_thread_list" not in comment:
                continue
            inner = BeautifulSoup(str(comment), "html.parser")
            nodes.extend(inner.select("li.j_thread_list"))
        return nodes
    
    @staticmethod
    def _data_field(node) -> dict:
        raw = node.get("data-field")
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}
    
    @staticmethod
    def extract_image_urls(node) -> list[str]:
        """
        Extract image URLs of a thread, preferring the full-size variant.
        
        Args:
            node: Thread <li> element
            
        Returns:
            Unique image URLs in page order
        """
        urls = []
        for img in node.select("img.threadlist_pic, img.j_m_pic"):
            url = img.get("bpic") or img.get("data-original") or img.get("src") or ""
            url = url.strip()
            if url.startswith("//"):
                url = "https:" + url
            if not url.startswith(("http://", "https://")):
                continue
            if url not in urls:
                urls.append(url)
        return urls
    
    def extract_item(self, node) -> Optional[Item]:
        """
        Build an item from one thread node.
        
        Args:
            node: Thread <li> element
            
        Returns:
            Item, or None if the node has no title link
        """
        title_link = node.select_one("a.j_th_tit")
        if not title_link:
            return None
        
        data = self._data_field(node)
        
        title = title_link.get("title") or title_link.get_text(strip=True)
        href = title_link.get("href", "")
        link = urljoin(self.base_url + "/", href) if href else None
        
        abstract_node = node.select_one("div.threadlist_abs")
        abstract = abstract_node.get_text(" ", strip=True) if abstract_node else None
        
        author = data.get("author_name")
        if not isinstance(author, str):
            author_node = node.select_one(".frs-author-name, .tb_icon_author")
            author = author_node.get_text(strip=True) if author_node else None
        
        reply_count = data.get("reply_num")
        if not isinstance(reply_count, int) or isinstance(reply_count, bool):
            reply_node = node.select_one("span.threadlist_rep_num")
            text = reply_node.get_text(strip=True) if reply_node else ""
            reply_count = int(text) if text.isdigit() else None
        
        return Item(
            title=title.strip(),
            link=link,
            author=author or None,
            reply_count=reply_count,
            abstract=abstract or None,
            image_urls=self.extract_image_urls(node),
        )
    
    def extract_items(self, html: str, max_items: Optional[int] = None) -> list[Item]:
        """
        Extract posts from a forum page.
        
        Args:
            html: HTML content
            max_items: Stop after this many posts
            
        Returns:
            List of Item objects in page order
        """
        soup = BeautifulSoup(html, "html.parser")
        items = []
        
        for node in self._thread_nodes(soup):
            if max_items is not None and len(items) >= max_items:
                break
            
            if self.skip_pinned and "thread_top" in (node.get("class") or []):
                continue
            
            item = self.extract_item(node)
            if item:
                items.append(item)
        
        return items
