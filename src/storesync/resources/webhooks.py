"""Webhook subscriptions, stored as ``<topic>.json`` with ``/`` replaced by ``-``."""

from __future__ import annotations

import json
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync

_OPTIONAL_LIST_FIELDS = ("fields", "metafield_namespaces", "private_metafield_namespaces")


def topic_handle(topic: str) -> str:
    """>>> topic_handle("orders/create")
    'orders-create'
    """
    return topic.replace("/", "-")


class WebhooksSync(ResourceSync):
    name: ClassVar[str] = "webhooks"

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        return await self._fetch_rest("webhooks.json", "webhooks", max_items)

    def handle_of(self, item: Item) -> str:
        return topic_handle(item["topic"])

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {"id": item.get("id"), "topic": item.get("topic")}

    def render(self, item: Item) -> str:
        content: dict[str, Any] = {
            "address": item.get("address"),
            "topic": item.get("topic"),
            "format": item.get("format"),
        }
        for key in _OPTIONAL_LIST_FIELDS:
            if item.get(key):
                content[key] = item[key]
        return json.dumps(content, indent=2, ensure_ascii=False)

    async def upload(self, local: LocalItem) -> None:
        content = local.read_json()
        webhook: dict[str, Any] = {
            "address": content.get("address"),
            "topic": content.get("topic"),
            "format": content.get("format") or "json",
        }
        for key in _OPTIONAL_LIST_FIELDS:
            if content.get(key):
                webhook[key] = content[key]

        webhook_id = local.remote_id
        if webhook_id is not None:
            await self.client.put_json(
                f"webhooks/{webhook_id}.json", {"webhook": webhook}, resource=self.name
            )
        else:
            await self.client.post_json("webhooks.json", {"webhook": webhook}, resource=self.name)

    async def delete_remote(self, item: Item) -> None:
        await self.client.delete(f"webhooks/{item['id']}.json", resource=self.name)
