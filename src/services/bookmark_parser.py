"""
Parser for browser bookmark exports (Netscape bookmark file format).

Pure functions with no I/O. The document is parsed with BeautifulSoup (lxml tree
builder) and walked depth-first in document order; every <a> element becomes one
ParsedBookmark.
"""
import logging
import re
import secrets
import string
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, PageElement, ParserRejectedMarkup, Tag
from bs4.element import PreformattedString

logger = logging.getLogger(__name__)

PLACEHOLDER_TOKEN_LENGTH = 10
PLACEHOLDER_ALPHABET = string.ascii_letters
FOLDER_SEPARATOR = "/"
# Base-10 integer, optionally signed; no whitespace or digit separators
ADD_DATE_PATTERN = re.compile(r"[+-]?[0-9]+")
# add_date is stored in a BIGINT column
ADD_DATE_MIN = -(2**63)
ADD_DATE_MAX = 2**63 - 1
ADD_DATE_MAX_DIGITS = len(str(ADD_DATE_MAX))


class BookmarkParseError(Exception):
    """Raised when an upload cannot be parsed as HTML."""

    pass


@dataclass
class ParsedBookmark:
    """A bookmark extracted from an export file, not yet persisted."""

    user_id: str
    url: str
    add_date: int = 0
    icon: str = ""
    name: str = ""
    folder: str = ""


def placeholder_url() -> str:
    """
    Build a stand-in URL for anchors without an href.

    Format: '#' followed by 10 random ASCII letters. The result is not a real link;
    it only keeps the url column non-empty and distinct within an import.
    """
    token = "".join(secrets.choice(PLACEHOLDER_ALPHABET) for _ in range(PLACEHOLDER_TOKEN_LENGTH))
    return f"#{token}"


def _walk(root: Tag) -> Iterator[PageElement]:
    """Yield every node under root (root included), depth-first, pre-order."""
    stack: list[PageElement] = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Tag):
            # Reversed so the first child is popped first
            stack.extend(reversed(node.contents))


def _first_text(anchor: Tag) -> str:
    """Data of the first direct text child; comments, CDATA and the like don't count."""
    for child in anchor.children:
        if isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            return str(child)
    return ""


def _folder_heading(dl: Tag) -> str | None:
    """
    Name of the folder a <dl> list belongs to.

    Exports write a folder as <dt><h3>Name</h3><dl>...</dl>. Depending on how the
    parser closes the <dt>, the heading is either the list's previous sibling or
    the <h3> inside a previous-sibling <dt>.
    """
    previous = next((s for s in dl.previous_siblings if isinstance(s, Tag)), None)
    if previous is not None and previous.name == "dt":
        previous = previous.find("h3", recursive=False)
    if previous is not None and previous.name == "h3":
        return previous.get_text(strip=True)
    return None


def _folder_path(anchor: Tag) -> str:
    names = []
    for parent in anchor.parents:
        if parent.name == "dl":
            heading = _folder_heading(parent)
            if heading:
                names.append(heading)
    return FOLDER_SEPARATOR.join(reversed(names))


def _parse_add_date(raw: str) -> int | None:
    """Integer value of an add_date attribute, or None if it is not a 64-bit integer."""
    if not ADD_DATE_PATTERN.fullmatch(raw):
        return None
    # int() refuses very long digit strings; nothing past 19 significant digits fits
    if len(raw.lstrip("+-").lstrip("0")) > ADD_DATE_MAX_DIGITS:
        return None
    value = int(raw)
    if not ADD_DATE_MIN <= value <= ADD_DATE_MAX:
        return None
    return value


def parse_bookmarks(data: bytes | str, user_id: str) -> list[ParsedBookmark]:
    """
    Extract bookmarks from an HTML bookmarks export.

    Every <a> element is visited once, in document order, including anchors nested
    inside other anchors. For each one:

    - url: the href attribute; absent or empty gets a placeholder_url().
    - add_date: the add_date attribute as an integer, 0 when absent.
    - icon: the icon attribute verbatim, empty when absent.
    - name: the first direct text child, empty when none.
    - folder: enclosing folder names joined with '/'.
    - user_id: stamped on every record.

    A single add_date that is present but not a 64-bit integer aborts the whole parse:
    the result is an empty list, not an error.

    Args:
        data:
            Raw bytes (or text) of the export file.
        user_id:
            Owner of the imported bookmarks.

    Returns:
        The extracted bookmarks, or an empty list if any add_date is malformed.

    Raises:
        BookmarkParseError: If the markup is rejected by the HTML parser.
    """
    try:
        soup = BeautifulSoup(data, "lxml")
    except ParserRejectedMarkup as e:
        raise BookmarkParseError(str(e)) from e

    bookmarks = []
    for node in _walk(soup):
        if not isinstance(node, Tag) or node.name != "a":
            continue

        raw_date = node.get("add_date")
        add_date = 0
        if raw_date is not None:
            add_date = _parse_add_date(raw_date)
            if add_date is None:
                logger.warning(
                    "bookmark_parse_aborted",
                    extra={"user_id": user_id, "add_date": raw_date},
                )
                return []

        bookmarks.append(
            ParsedBookmark(
                user_id=user_id,
                url=node.get("href") or placeholder_url(),
                add_date=add_date,
                icon=node.get("icon", ""),
                name=_first_text(node),
                folder=_folder_path(node),
            ),
        )

    return bookmarks


def unique_bookmarks(bookmarks: Iterable[ParsedBookmark]) -> list[ParsedBookmark]:
    """Drop bookmarks whose url repeats an earlier one, keeping first-occurrence order."""
    seen: set[str] = set()
    unique = []
    for bookmark in bookmarks:
        if bookmark.url in seen:
            continue
        seen.add(bookmark.url)
        unique.append(bookmark)
    return unique
