"""Best-effort image lookup for new dishes.

Resolution order, first hit wins:
1. Client-supplied image URL (verbatim)
2. YouTube thumbnail when the link carries a video id
3. og:image of the linked page (skipped for sites that block crawlers; only
   the first PREVIEW_MAX_BYTES are read and every redirect hop is re-checked)
4. Google Custom Search image (only when API key + CX are configured)
5. LoremFlickr stock photo keyed on the dish name (always succeeds)

Every remote step is a single attempt with a timeout. Failures are logged and
the chain moves on; nothing here raises to the caller.
"""

import html
import logging
import random
import re
from typing import Optional
from urllib.parse import quote, urljoin

import requests

from ..infra.url_guard import UnsafeUrlError, check_outbound_url, is_http_url
from ..settings import settings

logger = logging.getLogger("mealweek.images")

YOUTUBE_ID_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})"
)
YOUTUBE_THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/mqdefault.jpg"

# Sites that answer simple fetches with login walls
HARD_TO_SCRAPE_RE = re.compile(r"tiktok\.com|instagram\.com|facebook\.com", re.IGNORECASE)
OG_IMAGE_RE = re.compile(
    r"<meta\s+property=[\"']og:image[\"']\s+content=[\"'](.*?)[\"']", re.IGNORECASE
)
CRAWLER_USER_AGENT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
# og:image lives in <head>; the rest of the page is never read
PREVIEW_MAX_BYTES = 1024 * 1024
PREVIEW_CHUNK_SIZE = 8192
MAX_REDIRECTS = 3

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
SEARCH_QUERY_TEMPLATE = "{name} food meal recipe high resolution"

STOCK_PHOTO_URL = "https://loremflickr.com/500/500/{terms}?random={nonce}"
PLACEHOLDER_IMAGE_URL = "https://loremflickr.com/500/500/food,meal"


def youtube_thumbnail(link: Optional[str]) -> Optional[str]:
    if not link:
        return None
    match = YOUTUBE_ID_RE.search(link)
    if not match:
        return None
    return YOUTUBE_THUMBNAIL_URL.format(video_id=match.group(1))


def is_hard_to_scrape(link: str) -> bool:
    return bool(HARD_TO_SCRAPE_RE.search(link))


def stock_photo_word(name: str) -> str:
    """First word of `name` reduced to ASCII letters ('' if none has any)."""
    for word in name.split():
        cleaned = re.sub(r"[^a-zA-Z]", "", word)
        if cleaned:
            return cleaned
    return ""


def display_image(url: Optional[str]) -> str:
    """URL to render for a dish, substituting the placeholder when missing."""
    return url if url else PLACEHOLDER_IMAGE_URL


def _read_head(resp, limit: int = PREVIEW_MAX_BYTES) -> str:
    """Decoded text of at most `limit` bytes of a streamed response."""
    declared = resp.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        logger.info(f"Page declares {declared} bytes, reading the first {limit}")

    body = b""
    for chunk in resp.iter_content(chunk_size=PREVIEW_CHUNK_SIZE):
        body += chunk
        if len(body) >= limit:
            break

    try:
        return body[:limit].decode(resp.encoding or "utf-8", errors="replace")
    except LookupError:
        return body[:limit].decode("utf-8", errors="replace")


class ImageResolver:
    def __init__(
        self,
        session=None,
        google_api_key: Optional[str] = None,
        google_search_cx: Optional[str] = None,
        timeout: float = 5.0,
        keyword: str = "food",
        rng: Optional[random.Random] = None,
    ):
        self.session = session or requests.Session()
        self.google_api_key = google_api_key
        self.google_search_cx = google_search_cx
        self.timeout = timeout
        self.keyword = keyword
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(cls, session=None) -> "ImageResolver":
        return cls(
            session=session,
            google_api_key=settings.google_api_key,
            google_search_cx=settings.google_search_cx,
            timeout=settings.image_fetch_timeout,
            keyword=settings.stock_photo_keyword,
        )

    @property
    def search_configured(self) -> bool:
        return bool(self.google_api_key and self.google_search_cx)

    def resolve(self, name: str, link: Optional[str] = None, image: Optional[str] = None) -> str:
        if image:
            return image

        if link:
            found = youtube_thumbnail(link)
            if found:
                return found

            if not is_hard_to_scrape(link):
                found = self.link_preview(link)
                if found:
                    return found

        if self.search_configured:
            found = self.search_image(name)
            if found:
                return found

        return self.stock_photo(name)

    def link_preview(self, link: str) -> Optional[str]:
        """og:image of the linked page, or None."""
        try:
            resp = self._open_page(link)
            try:
                page = _read_head(resp)
            finally:
                resp.close()
        except (requests.RequestException, UnsafeUrlError) as e:
            logger.warning(f"Link preview failed for {link}: {e}")
            return None

        match = OG_IMAGE_RE.search(page)
        if not match:
            return None

        url = html.unescape(match.group(1)).strip()
        if not is_http_url(url):
            logger.warning(f"Ignoring non-http og:image on {link}: {url!r}")
            return None
        return url

    def _open_page(self, link: str):
        """Streamed GET of `link`, following redirects by hand so every hop
        passes the outbound URL guard."""
        url = link
        for _ in range(MAX_REDIRECTS + 1):
            check_outbound_url(url)
            resp = self.session.get(
                url,
                headers={"User-Agent": CRAWLER_USER_AGENT},
                timeout=self.timeout,
                stream=True,
                allow_redirects=False,
            )
            if resp.is_redirect:
                location = resp.headers.get("location", "")
                resp.close()
                url = urljoin(url, location)
                continue
            try:
                resp.raise_for_status()
            except requests.HTTPError:
                resp.close()
                raise
            return resp
        raise requests.TooManyRedirects(f"More than {MAX_REDIRECTS} redirects from {link}")

    def search_image(self, name: str) -> Optional[str]:
        params = {
            "q": SEARCH_QUERY_TEMPLATE.format(name=name),
            "cx": self.google_search_cx,
            "key": self.google_api_key,
            "searchType": "image",
            "num": 1,
            "imgSize": "medium",
            "safe": "active",
        }
        try:
            resp = self.session.get(GOOGLE_SEARCH_URL, params=params, timeout=self.timeout)
            if not resp.ok:
                logger.warning(f"Image search returned {resp.status_code} for {name!r}")
                return None
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Image search failed for {name!r}: {e}")
            return None

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            return None
        found = items[0].get("link")
        return found if isinstance(found, str) and found else None

    def stock_photo(self, name: str) -> str:
        word = stock_photo_word(name)
        terms = f"{quote(word)},{self.keyword}" if word else self.keyword
        return STOCK_PHOTO_URL.format(terms=terms, nonce=self.rng.randrange(10000))
