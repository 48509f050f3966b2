"""Online store pages, stored as ``<handle>.html``.

The primary file starts with a one-line HTML comment carrying the title
and template suffix, followed by the page body:

    <!-- Page: About us | Template: contact -->

    <p>Body</p>

Header values are HTML-escaped, with ``|`` and newlines as character
references, so any title survives the round trip.
"""

from __future__ import annotations

import html
import re
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync

_HEADER_PATTERN = re.compile(r"<!-- Page: (.+?)(?: \| Template: (.+?))? -->\n\n")

_METADATA_FIELDS = (
    "id",
    "title",
    "handle",
    "author",
    "created_at",
    "updated_at",
    "published_at",
    "template_suffix",
)


def _escape_header(value: str) -> str:
    return html.escape(value, quote=False).replace("|", "&#124;").replace("\n", "&#10;")


def render_page(page: Item) -> str:
    header = f"<!-- Page: {_escape_header(page.get('title') or page['handle'])}"
    if page.get("template_suffix"):
        header += f" | Template: {_escape_header(page['template_suffix'])}"
    return f"{header} -->\n\n{page.get('body_html') or ''}"


def parse_page(content: str, handle: str) -> dict[str, Any]:
    """Page payload for a local file; the title falls back to the handle."""
    match = _HEADER_PATTERN.match(content)
    page: dict[str, Any] = {"handle": handle, "title": handle}
    if match:
        page["title"] = html.unescape(match.group(1))
        if match.group(2):
            page["template_suffix"] = html.unescape(match.group(2))
        content = content[match.end():]
    page["body_html"] = content
    return page


class PagesSync(ResourceSync):
    name: ClassVar[str] = "pages"
    extension: ClassVar[str] = ".html"

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        return await self._fetch_rest("pages.json", "pages", max_items)

    def handle_of(self, item: Item) -> str:
        return item["handle"]

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {key: item.get(key) for key in _METADATA_FIELDS if item.get(key) is not None}

    def render(self, item: Item) -> str:
        return render_page(item)

    async def upload(self, local: LocalItem) -> None:
        payload = {"page": parse_page(local.read_text(), local.handle)}
        page_id = local.remote_id
        if page_id is not None:
            await self.client.put_json(f"pages/{page_id}.json", payload, resource=self.name)
        else:
            await self.client.post_json("pages.json", payload, resource=self.name)

    async def delete_remote(self, item: Item) -> None:
        await self.client.delete(f"pages/{item['id']}.json", resource=self.name)
