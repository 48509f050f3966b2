"""URL redirects, stored as ``<path>.json`` holding the target.

The file name is the redirect path without its leading slash, with the
remaining slashes replaced by ``-``; the exact path is kept in the sidecar.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync


def path_handle(path: str) -> str:
    """>>> path_handle("/old/page")
    'old-page'
    """
    return path.removeprefix("/").replace("/", "-") or "root"


def redirect_path_of(local: LocalItem) -> str:
    if local.remote is not None and local.remote.get("path"):
        return local.remote["path"]
    if local.metadata and local.metadata.get("path"):
        return local.metadata["path"]
    return "/" if local.handle == "root" else f"/{local.handle}"


class RedirectsSync(ResourceSync):
    name: ClassVar[str] = "redirects"

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        return await self._fetch_rest("redirects.json", "redirects", max_items)

    def handle_of(self, item: Item) -> str:
        return path_handle(item["path"])

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {"id": item.get("id"), "path": item.get("path")}

    def render(self, item: Item) -> str:
        return json.dumps({"target": item.get("target")}, indent=2, ensure_ascii=False)

    async def upload(self, local: LocalItem) -> None:
        content = local.read_json()
        redirect = {"path": redirect_path_of(local), "target": content.get("target")}

        redirect_id = local.remote_id
        if redirect_id is not None:
            await self.client.put_json(
                f"redirects/{redirect_id}.json", {"redirect": redirect}, resource=self.name
            )
        else:
            await self.client.post_json(
                "redirects.json", {"redirect": redirect}, resource=self.name
            )

    async def delete_remote(self, item: Item) -> None:
        await self.client.delete(f"redirects/{item['id']}.json", resource=self.name)
