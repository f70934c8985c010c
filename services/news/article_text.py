# services/news/article_text.py
from __future__ import annotations

import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from config.settings import get_settings

logger = logging.getLogger(__name__)

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MIN_PARAGRAPH_CHARS = 30
MAX_ARTICLE_CHARS = 3000
MIN_ARTICLE_CHARS = 50


def extract_main_text(html: str, max_chars: int = MAX_ARTICLE_CHARS) -> str:
    """Paragraph text of the page, preferring the first <article> element."""
    soup = BeautifulSoup(html or "", "html.parser")
    for s in soup(["script", "style", "noscript"]):
        s.decompose()

    root = soup.find("article") or soup
    paragraphs = []
    for p in root.find_all("p"):
        text = " ".join(p.get_text(" ").split())
        if len(text) > MIN_PARAGRAPH_CHARS:
            paragraphs.append(text)
    return "\n".join(paragraphs)[:max_chars]


async def fetch_article_text(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    """
    Best-effort article body for translation context. Any failure (bad URL,
    timeout, non-2xx, too little text) yields None.
    """
    if not url or not url.startswith(("http://", "https://")):
        return None

    timeout = httpx.Timeout(get_settings().article_timeout_s)
    headers = {"User-Agent": BROWSER_UA}
    try:
        if client is not None:
            r = await client.get(url, headers=headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as c:
                r = await c.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.debug("article_fetch_failed url=%s err=%s", url, e)
        return None

    if r.status_code >= 400:
        logger.debug("article_fetch_status url=%s status=%s", url, r.status_code)
        return None

    text = extract_main_text(r.text)
    return text if len(text) > MIN_ARTICLE_CHARS else None
