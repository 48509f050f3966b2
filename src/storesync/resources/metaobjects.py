"""Metaobjects over GraphQL, grouped by type.

Layout under the resource directory::

    <type>/<type>.definition.json   field definitions (pull only)
    <type>/<handle>.json            field key -> value
    <type>/<handle>.json.meta       id, handle, type, displayName, updatedAt

Handles are unique per type only, so the reconciliation key is
``<type>/<handle>``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync, read_metadata
from storesync.sync.reconcile import find_local_files_to_delete

DEFINITION_SUFFIX = ".definition.json"

DEFINITIONS_QUERY = """
query MetaobjectDefinitions($first: Int!, $after: String) {
  metaobjectDefinitions(first: $first, after: $after) {
    nodes {
      type
      name
      description
      fieldDefinitions {
        key
        name
        description
        required
        type { name category }
        validations { name value }
      }
      access { admin storefront }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

METAOBJECTS_QUERY = """
query Metaobjects($type: String!, $first: Int!, $after: String) {
  metaobjects(type: $type, first: $first, after: $after) {
    nodes {
      id
      handle
      type
      displayName
      updatedAt
      fields { key value }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

METAOBJECT_UPSERT = """
mutation MetaobjectUpsert($handle: MetaobjectHandleInput!, $metaobject: MetaobjectUpsertInput!) {
  metaobjectUpsert(handle: $handle, metaobject: $metaobject) {
    metaobject { id handle displayName }
    userErrors { field message }
  }
}
"""

METAOBJECT_DELETE = """
mutation MetaobjectDelete($id: ID!) {
  metaobjectDelete(id: $id) {
    deletedId
    userErrors { field message }
  }
}
"""


def definition_file_name(metaobject_type: str) -> str:
    return f"{metaobject_type}/{metaobject_type}{DEFINITION_SUFFIX}"


def field_value(value: Any) -> str:
    """Metaobject field values are strings; structured values are sent as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class MetaobjectsSync(ResourceSync):
    name: ClassVar[str] = "metaobjects"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.definitions: list[Item] = []

    async def fetch_definitions(self) -> list[Item]:
        self.definitions = await self._fetch_graphql(DEFINITIONS_QUERY, "metaobjectDefinitions")
        return self.definitions

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        definitions = await self.fetch_definitions()
        self.reporter.info(f"Found {len(definitions)} metaobject type(s)")

        metaobjects: list[Item] = []
        for definition in definitions:
            remaining = None if max_items is None else max_items - len(metaobjects)
            if remaining is not None and remaining < 1:
                break
            items = await self._fetch_graphql(
                METAOBJECTS_QUERY,
                "metaobjects",
                remaining,
                variables={"type": definition["type"]},
            )
            self.reporter.info(f"  {definition['type']}: {len(items)} metaobject(s)")
            metaobjects.extend(items)
        return metaobjects

    def handle_of(self, item: Item) -> str:
        return f"{item['type']}/{item['handle']}"

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {
            "id": item.get("id"),
            "handle": item.get("handle"),
            "type": item.get("type"),
            "displayName": item.get("displayName"),
            "updatedAt": item.get("updatedAt"),
        }

    def render(self, item: Item) -> str:
        content = {field["key"]: field.get("value") for field in item.get("fields") or []}
        return json.dumps(content, indent=2, ensure_ascii=False)

    async def write_extras(self, directory: Path) -> None:
        for definition in self.definitions:
            path = directory / definition_file_name(definition["type"])
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(definition, indent=2, ensure_ascii=False), encoding="utf-8")

    def collect_local(self, directory: Path) -> list[LocalItem]:
        items: list[LocalItem] = []
        for type_dir in sorted(p for p in directory.iterdir() if p.is_dir()):
            for path in sorted(type_dir.iterdir()):
                name = path.name
                if not path.is_file() or not name.endswith(self.extension):
                    continue
                if name.endswith(DEFINITION_SUFFIX):
                    continue
                handle = f"{type_dir.name}/{name.removesuffix(self.extension)}"
                items.append(LocalItem(handle=handle, path=path, metadata=read_metadata(path)))
        return items

    def find_local_deletions(self, directory: Path, remote: list[Item]) -> list[str]:
        remote_names = {self.file_name(item) for item in remote}
        remote_names |= {definition_file_name(d["type"]) for d in self.definitions}
        return find_local_files_to_delete(
            directory, remote_names, extension=self.extension, recursive=True
        )

    async def upload(self, local: LocalItem) -> None:
        content = local.read_json()
        metadata = local.metadata or {}
        dir_type, _, handle = local.handle.partition("/")
        metaobject_type = metadata.get("type") or dir_type

        fields = [{"key": key, "value": field_value(value)} for key, value in content.items()]
        await self.graphql.mutation(
            METAOBJECT_UPSERT,
            {
                "handle": {"type": metaobject_type, "handle": handle},
                "metaobject": {"fields": fields},
            },
            resource=self.name,
            payload_key="metaobjectUpsert",
        )

    async def delete_remote(self, item: Item) -> None:
        await self.graphql.mutation(
            METAOBJECT_DELETE,
            {"id": item["id"]},
            resource=self.name,
            payload_key="metaobjectDelete",
        )
