"""Shop-level metafields, stored as ``<namespace>.<key>.json``.

The owner of each metafield is kept in the sidecar so that a push sends
it back unchanged.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync


class MetafieldsSync(ResourceSync):
    name: ClassVar[str] = "metafields"

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        return await self._fetch_rest("metafields.json", "metafields", max_items)

    def handle_of(self, item: Item) -> str:
        return f"{item['namespace']}.{item['key']}"

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {
            "id": item.get("id"),
            "owner_resource": item.get("owner_resource"),
            "owner_id": item.get("owner_id"),
        }

    def render(self, item: Item) -> str:
        content: dict[str, Any] = {
            "namespace": item.get("namespace"),
            "key": item.get("key"),
            "value": item.get("value"),
            "type": item.get("type"),
        }
        if item.get("description"):
            content["description"] = item["description"]
        return json.dumps(content, indent=2, ensure_ascii=False)

    async def upload(self, local: LocalItem) -> None:
        content = local.read_json()
        namespace, _, key = local.handle.partition(".")
        metafield: dict[str, Any] = {
            "namespace": content.get("namespace") or namespace,
            "key": content.get("key") or key,
            "value": content.get("value"),
            "type": content.get("type"),
        }
        if content.get("description"):
            metafield["description"] = content["description"]
        if local.metadata:
            for field in ("owner_resource", "owner_id"):
                if local.metadata.get(field) is not None:
                    metafield[field] = local.metadata[field]

        metafield_id = local.remote_id
        if metafield_id is not None:
            await self.client.put_json(
                f"metafields/{metafield_id}.json", {"metafield": metafield}, resource=self.name
            )
        else:
            await self.client.post_json(
                "metafields.json", {"metafield": metafield}, resource=self.name
            )

    async def delete_remote(self, item: Item) -> None:
        await self.client.delete(f"metafields/{item['id']}.json", resource=self.name)
