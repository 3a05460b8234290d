import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
from lxml import etree
from lxml import html as lxml_html

logger = logging.getLogger(__name__)

USER_AGENT = "feed-pipeline/1.0 (image lookup)"
REQUEST_TIMEOUT = 10

# Pages on these hosts never carry a useful preview image
DISABLED_IMAGE_DOMAINS = {
    "www.githubstatus.com",
    "news.ycombinator.com",
    "github.com",
    "gist.github.com",
    "pypi.org",
}

META_IMAGE_XPATHS = [
    "//meta[@property='og:image']/@content",
    "//meta[@name='og:image']/@content",
    "//meta[@name='twitter:image']/@content",
    "//meta[@property='twitter:image']/@content",
    "//meta[@name='twitter:image:src']/@content",
]


def image_disabled(url: str) -> bool:
    return urlparse(url).hostname in DISABLED_IMAGE_DOMAINS


def load_image(url: str, referrer_site: Optional[str] = None) -> Optional[str]:
    """
    Look up the preview image of a page.

    Reads og:image then twitter:image. Returns None when the page cannot be
    fetched, is not HTML or declares no image.
    """
    if image_disabled(url):
        return None

    headers = {"User-Agent": USER_AGENT}
    if referrer_site:
        headers["Referer"] = f"https://{referrer_site}"

    logger.debug("Try to load image for %s", url)
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT, headers=headers)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.debug("Fetch %s failed: %s", url, e)
        return None

    content_type = response.headers.get("content-type", "")
    if "text/html" not in content_type:
        logger.debug("Fetch %s failed, content type is %s", url, content_type)
        return None

    try:
        tree = lxml_html.fromstring(response.content)
    except (etree.ParserError, ValueError) as e:
        logger.debug("Parse %s html failed: %s", url, e)
        return None

    for xpath in META_IMAGE_XPATHS:
        values = [value.strip() for value in tree.xpath(xpath) if value.strip()]
        if values:
            image = urljoin(url, values[0])
            logger.info("Found image %s for %s", image, url)
            return image
    return None
