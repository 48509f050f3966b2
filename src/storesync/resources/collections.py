"""Custom and smart collections, stored together as ``<handle>.json``.

The two kinds live behind separate endpoints; each listed item is tagged
with ``collection_type`` so push and delete can pick the right one.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync

_ENDPOINTS = {"custom": "custom_collections", "smart": "smart_collections"}

_METADATA_FIELDS = (
    "id",
    "title",
    "handle",
    "collection_type",
    "published_at",
    "sort_order",
    "template_suffix",
    "published_scope",
    "updated_at",
)


def collection_type_of(local: LocalItem, content: dict[str, Any]) -> str:
    """Kind of a local collection: remote item, then sidecar, then content."""
    if local.remote is not None:
        return local.remote.get("collection_type", "custom")
    if local.metadata and local.metadata.get("collection_type") in _ENDPOINTS:
        return local.metadata["collection_type"]
    return "smart" if content.get("rules") else "custom"


class CollectionsSync(ResourceSync):
    name: ClassVar[str] = "collections"

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        collections: list[Item] = []
        for collection_type, endpoint in _ENDPOINTS.items():
            remaining = None if max_items is None else max_items - len(collections)
            if remaining is not None and remaining < 1:
                break
            items = await self._fetch_rest(f"{endpoint}.json", endpoint, remaining)
            collections.extend({**item, "collection_type": collection_type} for item in items)
        return collections

    def handle_of(self, item: Item) -> str:
        return item["handle"]

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        metadata = {key: item.get(key) for key in _METADATA_FIELDS}
        metadata["collection_type"] = item.get("collection_type", "custom")
        return metadata

    def render(self, item: Item) -> str:
        content: dict[str, Any] = {
            "title": item.get("title"),
            "body_html": item.get("body_html") or "",
            "sort_order": item.get("sort_order") or "alpha-asc",
            "template_suffix": item.get("template_suffix"),
        }
        if item.get("collection_type") == "smart" and item.get("rules"):
            content["rules"] = item["rules"]
            content["disjunctive"] = item.get("disjunctive", False)
        return json.dumps(content, indent=2, ensure_ascii=False)

    async def upload(self, local: LocalItem) -> None:
        content = local.read_json()
        collection_type = collection_type_of(local, content)
        endpoint = _ENDPOINTS[collection_type]

        collection: dict[str, Any] = {
            "handle": local.handle,
            "title": content.get("title") or local.handle,
            "body_html": content.get("body_html", ""),
            "sort_order": content.get("sort_order"),
            "template_suffix": content.get("template_suffix"),
        }
        if collection_type == "smart" and content.get("rules"):
            collection["rules"] = content["rules"]
            collection["disjunctive"] = content.get("disjunctive", False)

        payload_key = endpoint[:-1]
        collection_id = local.remote_id
        if collection_id is not None:
            collection["id"] = collection_id
            await self.client.put_json(
                f"{endpoint}/{collection_id}.json",
                {payload_key: collection},
                resource=self.name,
            )
        else:
            await self.client.post_json(
                f"{endpoint}.json", {payload_key: collection}, resource=self.name
            )

    async def delete_remote(self, item: Item) -> None:
        endpoint = _ENDPOINTS[item.get("collection_type", "custom")]
        await self.client.delete(f"{endpoint}/{item['id']}.json", resource=self.name)
