"""Index page link discovery."""

from __future__ import annotations

from urllib.parse import urljoin, urlparse, urlunparse

import structlog

from ..config import SiteProfile
from ..errors import DiscoveryFailure, FetchFailure, ParseFailure
from .dom import next_element, node_text, parse_html
from .fetcher import Fetcher
from .records import Link


class LinkDiscoverer:
    """Turn an index page into an ordered, deduplicated list of links."""

    def __init__(self, profile: SiteProfile, logger: structlog.BoundLogger | None = None) -> None:
        self.profile = profile
        self.rules = profile.index
        self.logger = logger or structlog.get_logger("refscrape.discovery")

    def fetch_links(self, fetcher: Fetcher) -> list[Link]:
        """Fetch the profile's index page and discover its links."""

        try:
            response = fetcher.fetch(self.profile.index_url)
        except FetchFailure as exc:
            raise DiscoveryFailure(f"failed to fetch index page: {exc.reason}") from exc
        return self.discover(response.content, response.url)

    def discover(self, content: str | bytes, page_url: str | None = None) -> list[Link]:
        try:
            tree = parse_html(content)
        except ParseFailure as exc:
            raise DiscoveryFailure(f"failed to parse index page HTML: {exc}") from exc

        page_url = page_url or self.profile.index_url
        links: list[Link] = []
        seen: set[str] = set()
        for heading in tree.css(self.rules.heading_selector):
            category = node_text(heading)
            if not self.rules.is_section(category):
                continue
            table = next_element(heading)
            if table is None or table.tag != "table":
                continue
            for anchor in table.css(self.rules.link_selector):
                href = (anchor.attributes.get("href") or "").strip()
                if not href:
                    continue
                url = self.resolve(href, page_url)
                if not url or url in seen:
                    continue
                seen.add(url)
                links.append(Link(identifier=url, category=category))
        self.logger.info("links_discovered", total=len(links), index_url=page_url)
        return links

    def resolve(self, href: str, page_url: str | None = None) -> str:
        if href.startswith("http"):
            return href
        prefix = self.profile.site_prefix
        if prefix and self.profile.base_url and href.startswith(prefix):
            return self.profile.base_url.rstrip("/") + href
        try:
            joined = urljoin(page_url or self.profile.index_url, href)
            return urlunparse(urlparse(joined))
        except ValueError as exc:
            self.logger.warning("unresolvable_href", href=href, error=str(exc))
            return ""


__all__ = ["LinkDiscoverer"]
