"""Store files (images, videos, generic files) over GraphQL.

Files are stored under their CDN file name with a YAML sidecar. Uploads
go through a staged upload: ``stagedUploadsCreate`` returns a form target,
the bytes are posted there, and ``fileCreate`` (or ``fileUpdate`` for a
name that already exists remotely) registers the staged resource.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any, ClassVar
from urllib.parse import urlsplit

from storesync.core.errors import StoreSyncError
from storesync.resources.base import Item, LocalItem, ResourceSync, write_metadata

FILES_QUERY = """
query Files($first: Int!, $after: String) {
  files(first: $first, after: $after) {
    edges {
      node {
        ... on MediaImage {
          id
          alt
          createdAt
          fileStatus
          image { url }
        }
        ... on Video {
          id
          alt
          createdAt
          fileStatus
          sources { url }
        }
        ... on GenericFile {
          id
          alt
          createdAt
          fileStatus
          url
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

STAGED_UPLOADS_CREATE = """
mutation StagedUploadsCreate($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets {
      url
      resourceUrl
      parameters { name value }
    }
    userErrors { field message }
  }
}
"""

FILE_CREATE = """
mutation FileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files { id alt createdAt }
    userErrors { field message }
  }
}
"""

FILE_UPDATE = """
mutation FileUpdate($files: [FileUpdateInput!]!) {
  fileUpdate(files: $files) {
    files { id alt createdAt }
    userErrors { field message }
  }
}
"""

FILE_DELETE = """
mutation FileDelete($fileIds: [ID!]!) {
  fileDelete(fileIds: $fileIds) {
    deletedFileIds
    userErrors { field message }
  }
}
"""

MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".zip": "application/zip",
}

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".mov", ".avi"})


def file_url(node: Item) -> str | None:
    """Download URL of a file node, whichever kind it is."""
    image = node.get("image") or {}
    if image.get("url"):
        return image["url"]
    sources = node.get("sources") or []
    if sources and sources[0].get("url"):
        return sources[0]["url"]
    return node.get("url") or None


def file_name_of(node: Item) -> str:
    """Local file name: the last URL path segment, or ``file-<id>``."""
    url = file_url(node)
    name = PurePosixPath(urlsplit(url).path).name if url else ""
    if name:
        return name
    return f"file-{str(node['id']).rsplit('/', 1)[-1]}"


def content_type_of(node: Item) -> str:
    if (node.get("image") or {}).get("url"):
        return "IMAGE"
    if node.get("sources"):
        return "VIDEO"
    return "FILE"


def mime_type_for(file_name: str) -> str:
    return MIME_TYPES.get(PurePosixPath(file_name).suffix.lower(), "application/octet-stream")


def store_content_type_for(file_name: str) -> str:
    suffix = PurePosixPath(file_name).suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return "IMAGE"
    if suffix in VIDEO_EXTENSIONS:
        return "VIDEO"
    return "FILE"


class FilesSync(ResourceSync):
    name: ClassVar[str] = "files"
    extension: ClassVar[str] = ""

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        nodes = await self._fetch_graphql(FILES_QUERY, "files", max_items)
        # Nodes of other file kinds come back empty
        return [node for node in nodes if node.get("id")]

    def handle_of(self, item: Item) -> str:
        return file_name_of(item)

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {
            "id": item.get("id"),
            "alt": item.get("alt"),
            "createdAt": item.get("createdAt"),
            "fileStatus": item.get("fileStatus"),
            "contentType": content_type_of(item),
        }

    async def download(self, item: Item, directory: Path) -> None:
        url = file_url(item)
        if not url:
            raise StoreSyncError(f"No URL available for file ID {item.get('id')}")
        content = await self.client.download(url)
        path = directory / self.file_name(item)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        write_metadata(path, self.extract_metadata(item))

    async def _stage(self, local: LocalItem, content: bytes) -> str:
        """Upload the bytes to a staged target and return its resource URL."""
        data = await self.graphql.mutation(
            STAGED_UPLOADS_CREATE,
            {
                "input": [
                    {
                        "resource": "FILE",
                        "filename": local.handle,
                        "mimeType": mime_type_for(local.handle),
                        "fileSize": str(len(content)),
                        "httpMethod": "POST",
                    }
                ]
            },
            resource=self.name,
            payload_key="stagedUploadsCreate",
        )
        targets = data["stagedUploadsCreate"].get("stagedTargets") or []
        if not targets:
            raise StoreSyncError(f"No staged upload target returned for {local.handle}")
        target = targets[0]
        fields = {param["name"]: param["value"] for param in target.get("parameters") or []}
        await self.client.upload_form(
            target["url"], fields, local.handle, content, mime_type_for(local.handle)
        )
        return target["resourceUrl"]

    async def upload(self, local: LocalItem) -> None:
        content = local.path.read_bytes()
        resource_url = await self._stage(local, content)
        alt = (local.metadata or {}).get("alt") or local.handle

        file_id = local.remote_id
        if file_id is not None:
            await self.graphql.mutation(
                FILE_UPDATE,
                {"files": [{"id": file_id, "alt": alt, "originalSource": resource_url}]},
                resource=self.name,
                payload_key="fileUpdate",
            )
        else:
            await self.graphql.mutation(
                FILE_CREATE,
                {
                    "files": [
                        {
                            "alt": alt,
                            "contentType": store_content_type_for(local.handle),
                            "originalSource": resource_url,
                        }
                    ]
                },
                resource=self.name,
                payload_key="fileCreate",
            )

    async def delete_remote(self, item: Item) -> None:
        await self.graphql.mutation(
            FILE_DELETE, {"fileIds": [item["id"]]}, resource=self.name, payload_key="fileDelete"
        )
