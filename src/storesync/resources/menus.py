"""Navigation menus over GraphQL, stored as ``<handle>.json`` holding the link list."""

from __future__ import annotations

import json
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync

MENUS_QUERY = """
query Menus($first: Int!, $after: String) {
  menus(first: $first, after: $after) {
    edges {
      node {
        id
        title
        handle
        items {
          id
          title
          url
          type
        }
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

MENU_CREATE = """
mutation MenuCreate($title: String!, $handle: String!, $items: [MenuItemCreateInput!]!) {
  menuCreate(title: $title, handle: $handle, items: $items) {
    menu { id title handle }
    userErrors { field message }
  }
}
"""

MENU_UPDATE = """
mutation MenuUpdate($id: ID!, $title: String!, $items: [MenuItemUpdateInput!]!) {
  menuUpdate(id: $id, title: $title, items: $items) {
    menu { id title handle }
    userErrors { field message }
  }
}
"""

MENU_DELETE = """
mutation MenuDelete($id: ID!) {
  menuDelete(id: $id) {
    deletedMenuId
    userErrors { field message }
  }
}
"""


def menu_items_input(links: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {"title": link.get("title"), "url": link.get("url"), "type": link.get("type")}
        for link in links
    ]


class MenusSync(ResourceSync):
    name: ClassVar[str] = "menus"

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        return await self._fetch_graphql(MENUS_QUERY, "menus", max_items)

    def handle_of(self, item: Item) -> str:
        return item["handle"]

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {"id": item.get("id"), "title": item.get("title"), "handle": item.get("handle")}

    def render(self, item: Item) -> str:
        return json.dumps(item.get("items") or [], indent=2, ensure_ascii=False)

    async def upload(self, local: LocalItem) -> None:
        items = menu_items_input(local.read_json())
        title = (local.metadata or {}).get("title") or local.handle

        menu_id = local.remote_id
        if menu_id is not None:
            await self.graphql.mutation(
                MENU_UPDATE,
                {"id": menu_id, "title": title, "items": items},
                resource=self.name,
                payload_key="menuUpdate",
            )
        else:
            await self.graphql.mutation(
                MENU_CREATE,
                {"title": title, "handle": local.handle, "items": items},
                resource=self.name,
                payload_key="menuCreate",
            )

    async def delete_remote(self, item: Item) -> None:
        await self.graphql.mutation(
            MENU_DELETE, {"id": item["id"]}, resource=self.name, payload_key="menuDelete"
        )
