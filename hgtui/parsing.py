"""Extract project records from the three HelloGitHub listing layouts.

Search results, volume digests and category digests all describe the same
kind of project entry, but each page lays the entries out differently. Every
parser here returns plain ``Project`` records; entries without a project link
are filler blocks and are skipped, while markup that breaks a positional
assumption (badge icons, volume headers) raises ``ParseContractViolation``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, NavigableString, Tag

from hgtui.errors import ParseContractViolation
from hgtui.models import NA, Category, GlobalInfo, Project, SearchMode

logger = logging.getLogger(__name__)

TRACKING_PREFIX = "/periodical/statistics/click/?target="
CHINESE_MARKER = "中文"
HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
BADGE_COUNT = 3

NUMBER_RE = re.compile(r"\d+")
VOLUME_HREF_RE = re.compile(r"/periodical/volume/(\d+)")


class NodeIndex:
    """Pre-order index over the element nodes of a parsed document.

    Looking up "the nearest heading before this node" becomes a backward scan
    over a flat list instead of a recursive walk of live sibling links.
    """

    def __init__(self, root: Tag) -> None:
        self.nodes: list[Tag] = [root, *root.find_all(True)]
        self._positions = {id(node): position for position, node in enumerate(self.nodes)}

    def position(self, node: Tag) -> int:
        return self._positions[id(node)]

    def preceding_sibling(self, node: Tag, predicate: Callable[[Tag], bool]) -> Tag | None:
        parent = node.parent
        for position in range(self.position(node) - 1, -1, -1):
            candidate = self.nodes[position]
            if candidate is parent:
                return None
            if candidate.parent is parent and predicate(candidate):
                return candidate
        return None


def is_heading(node: Tag) -> bool:
    return node.name in HEADING_TAGS


def is_project_anchor(node: Tag) -> bool:
    return node.name == "a" and node.has_attr("data-id")


def strip_tracking(href: str) -> str:
    return href.replace(TRACKING_PREFIX, "").strip()


def text_lines(node: Tag | None) -> list[str]:
    if node is None:
        return []
    return [line.strip() for line in node.get_text().split("\n") if line.strip()]


def pick_description(lines: list[str]) -> str:
    # The first line is the project title or star count; a bare "中文" line
    # only links to a Chinese README and sits in front of the real text.
    if len(lines) < 2:
        return NA
    if lines[1] == CHINESE_MARKER:
        return lines[2] if len(lines) > 2 else NA
    return lines[1]


def parse_number(text: str, what: str) -> int:
    match = NUMBER_RE.search(text)
    if match is None:
        raise ParseContractViolation(f"Expected a number in {what}, got {text!r}")
    return int(match.group(0))


def entry_block(start: Tag, is_boundary: Callable[[Tag], bool]) -> list[Tag]:
    block: list[Tag] = []
    for sibling in start.find_next_siblings():
        if is_boundary(sibling):
            break
        block.append(sibling)
    return block


def find_in_block(block: list[Tag], selector: str) -> tuple[Tag | None, Tag | None]:
    """Return the first match of ``selector`` and the block node holding it."""
    for node in block:
        if node.css.match(selector):
            return node, node
        match = node.select_one(selector)
        if match is not None:
            return match, node
    return None, None


def link_url(link: Tag | None) -> str:
    if link is None:
        return ""
    return strip_tracking(str(link.get("href") or ""))


def icon_text(icon: Tag) -> str:
    node = icon.next_sibling
    while node is not None:
        if isinstance(node, Tag):
            return node.get_text(strip=True) or NA
        if isinstance(node, NavigableString) and node.strip():
            return node.strip()
        node = node.next_sibling
    return NA


def parse_badges(badges: Tag | None) -> tuple[str, str, str]:
    if badges is None:
        return NA, NA, NA
    icons = badges.find_all("i")
    if len(icons) < BADGE_COUNT:
        raise ParseContractViolation(
            f"Expected {BADGE_COUNT} badge icons (star, watch, fork), found {len(icons)}"
        )
    star, watch, fork = (icon_text(icon) for icon in icons[:BADGE_COUNT])
    return star, watch, fork


def parse_search(html: str) -> list[Project]:
    soup = BeautifulSoup(html, "html.parser")
    projects: list[Project] = []
    for heading in soup.select(".content-subhead"):
        link = heading.select_one("a.project-url")
        url = link_url(link)
        if not url:
            logger.debug("Skipping search entry without project link: %s", heading.get_text(strip=True))
            continue

        summary = heading.find_next_sibling()
        lines = text_lines(summary)
        star = NA
        if lines and lines[0].startswith("Star"):
            star = lines[0].replace("Star", "", 1).strip() or NA

        footer = summary.find_next_sibling() if summary is not None else None
        footer_text = footer.get_text(strip=True) if footer is not None else ""
        if "、" not in footer_text:
            raise ParseContractViolation(
                f"Search entry {link.get_text(strip=True)!r} has no '<volume>、<category>' line"
            )
        volume_text, _, category = footer_text.partition("、")

        projects.append(
            Project(
                name=link.get_text(strip=True),
                volume=parse_number(volume_text, "search entry volume"),
                category=category,
                url=url,
                description=pick_description(lines),
                star=star,
            )
        )
    return projects


def page_volume(soup: BeautifulSoup) -> int:
    header = soup.select_one(".header-title")
    if header is None:
        raise ParseContractViolation("Volume page has no .header-title")
    return parse_number(header.get_text(strip=True), "volume header")


def parse_volume(html: str) -> list[Project]:
    soup = BeautifulSoup(html, "html.parser")
    volume = page_volume(soup)
    index = NodeIndex(soup)

    def boundary(node: Tag) -> bool:
        return is_heading(node) or is_project_anchor(node)

    projects: list[Project] = []
    for anchor in soup.find_all(is_project_anchor):
        block = entry_block(anchor, boundary)
        link, holder = find_in_block(block, "a.project-url")
        url = link_url(link)
        if not url:
            logger.debug("Skipping volume entry %s without project link", anchor.get("data-id"))
            continue

        heading = index.preceding_sibling(anchor, is_heading)
        category = heading.get_text(" ", strip=True) if heading is not None else Category.OTHER.value
        badges, _ = find_in_block(block, "div.project-badges")
        star, watch, fork = parse_badges(badges)

        projects.append(
            Project(
                name=link.get_text(strip=True),
                volume=volume,
                category=category,
                url=url,
                description=pick_description(text_lines(holder)),
                star=star,
                watch=watch,
                fork=fork,
            )
        )
    return projects


def parse_category(html: str) -> list[Project]:
    soup = BeautifulSoup(html, "html.parser")
    title = soup.select_one(".category-title")
    if title is None:
        raise ParseContractViolation("Category page has no .category-title")
    category = title.get_text(strip=True)

    def boundary(node: Tag) -> bool:
        return node.name == "h3" and "project-title" in (node.get("class") or [])

    projects: list[Project] = []
    for heading in soup.select("h3.project-title"):
        link = heading.select_one("a.project-url")
        url = link_url(link)
        if not url:
            logger.debug("Skipping category entry without project link: %s", heading.get_text(strip=True))
            continue

        block = entry_block(heading, boundary)
        summary = block[0] if block else None
        lines = text_lines(summary)
        if not lines:
            raise ParseContractViolation(f"Category entry {link.get_text(strip=True)!r} has no summary")
        badges, _ = find_in_block(block[1:], "div.project-badges")
        star, watch, fork = parse_badges(badges)

        projects.append(
            Project(
                name=link.get_text(strip=True),
                volume=parse_number(lines[0], "category entry volume"),
                category=category,
                url=url,
                description=pick_description(lines),
                star=star,
                watch=watch,
                fork=fork,
            )
        )
    return projects


def parse(html: str, mode: SearchMode) -> list[Project]:
    if mode is SearchMode.VOLUME:
        return parse_volume(html)
    if mode is SearchMode.CATEGORY:
        return parse_category(html)
    return parse_search(html)


def parse_global_info(html: str) -> GlobalInfo:
    soup = BeautifulSoup(html, "html.parser")
    volumes: list[int] = []
    for link in soup.select('a[href*="/periodical/volume/"]'):
        match = VOLUME_HREF_RE.search(str(link.get("href") or ""))
        if match:
            volumes.append(int(match.group(1)))
    if not volumes:
        raise ParseContractViolation("Landing page lists no volumes")

    count_node = soup.select_one(".project-count")
    count_digits = re.sub(r"\D", "", count_node.get_text()) if count_node is not None else ""
    star_node = soup.select_one(".star-count")
    star_count = star_node.get_text(strip=True) if star_node is not None else ""

    return GlobalInfo(
        max_volume=max(volumes),
        project_count=int(count_digits) if count_digits else 0,
        star_count=star_count or NA,
    )
