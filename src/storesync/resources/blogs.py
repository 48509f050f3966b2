"""Blog articles, grouped by blog.

Layout under the resource directory::

    <blog>/_blog.meta               blog metadata (pull only)
    <blog>/<article>.json           body_html, summary_html, image
    <blog>/<article>.json.meta      article metadata

The reconciliation key of an article is ``<blog>/<article>``. Blogs
themselves are not created or deleted; an article whose blog does not
exist remotely fails to upload.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, ClassVar

from storesync.core.errors import StoreSyncError
from storesync.resources.base import Item, LocalItem, ResourceSync, read_metadata, write_metadata
from storesync.sync.reconcile import find_local_files_to_delete

BLOG_META_NAME = "_blog.meta"

_BLOG_METADATA_FIELDS = (
    "id",
    "title",
    "handle",
    "created_at",
    "updated_at",
    "commentable",
    "template_suffix",
    "tags",
)

_ARTICLE_METADATA_FIELDS = (
    "id",
    "title",
    "handle",
    "blog_id",
    "author",
    "published_at",
    "created_at",
    "updated_at",
    "template_suffix",
    "tags",
)

# Sidecar fields that are sent back on push
_PUSHED_METADATA_FIELDS = ("author", "published_at", "template_suffix", "tags")


class BlogsSync(ResourceSync):
    name: ClassVar[str] = "blogs"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.blogs: list[Item] = []

    @property
    def item_type(self) -> str:
        return "Blog Articles"

    async def fetch_blogs(self) -> list[Item]:
        self.blogs = await self._fetch_rest("blogs.json", "blogs")
        return self.blogs

    def blog_by_handle(self, handle: str) -> Item | None:
        return next((blog for blog in self.blogs if blog.get("handle") == handle), None)

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        blogs = await self.fetch_blogs()
        self.reporter.info(f"Found {len(blogs)} blog(s)")

        articles: list[Item] = []
        for blog in blogs:
            remaining = None if max_items is None else max_items - len(articles)
            if remaining is not None and remaining < 1:
                break
            items = await self._fetch_rest(f"blogs/{blog['id']}/articles.json", "articles", remaining)
            self.reporter.info(f"  {blog['handle']}: {len(items)} article(s)")
            articles.extend(
                {**item, "blog_id": blog["id"], "blog_handle": blog["handle"]} for item in items
            )
        return articles

    def handle_of(self, item: Item) -> str:
        return f"{item['blog_handle']}/{item['handle']}"

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {key: item.get(key) for key in _ARTICLE_METADATA_FIELDS}

    def render(self, item: Item) -> str:
        content = {
            "body_html": item.get("body_html") or "",
            "summary_html": item.get("summary_html"),
            "image": item.get("image"),
        }
        return json.dumps(content, indent=2, ensure_ascii=False)

    async def write_extras(self, directory: Path) -> None:
        for blog in self.blogs:
            blog_dir = directory / blog["handle"]
            blog_dir.mkdir(parents=True, exist_ok=True)
            metadata = {key: blog.get(key) for key in _BLOG_METADATA_FIELDS}
            # _blog.meta is the sidecar of the (absent) primary "_blog"
            write_metadata(blog_dir / BLOG_META_NAME.removesuffix(".meta"), metadata)

    def collect_local(self, directory: Path) -> list[LocalItem]:
        items: list[LocalItem] = []
        for blog_dir in sorted(p for p in directory.iterdir() if p.is_dir()):
            for path in sorted(blog_dir.iterdir()):
                if not path.is_file() or not path.name.endswith(self.extension):
                    continue
                handle = f"{blog_dir.name}/{path.name.removesuffix(self.extension)}"
                items.append(LocalItem(handle=handle, path=path, metadata=read_metadata(path)))
        return items

    def find_local_deletions(self, directory: Path, remote: list[Item]) -> list[str]:
        remote_names = {self.file_name(item) for item in remote}
        to_delete = find_local_files_to_delete(
            directory, remote_names, extension=self.extension, recursive=True
        )
        if directory.is_dir():
            remote_blogs = {blog["handle"] for blog in self.blogs}
            for blog_dir in sorted(p for p in directory.iterdir() if p.is_dir()):
                if blog_dir.name not in remote_blogs and (blog_dir / BLOG_META_NAME).is_file():
                    to_delete.append(f"{blog_dir.name}/{BLOG_META_NAME}")
        return to_delete

    async def upload(self, local: LocalItem) -> None:
        content = local.read_json()
        metadata = local.metadata or {}
        blog_handle, _, article_handle = local.handle.partition("/")
        blog = self.blog_by_handle(blog_handle)
        if blog is None:
            raise StoreSyncError(f"Blog not found: {blog_handle}")

        article: dict[str, Any] = {
            "title": metadata.get("title") or article_handle,
            "handle": article_handle,
            "body_html": content.get("body_html") or "",
        }
        if "summary_html" in content:
            article["summary_html"] = content["summary_html"]
        if content.get("image"):
            article["image"] = content["image"]
        for key in _PUSHED_METADATA_FIELDS:
            if metadata.get(key):
                article[key] = metadata[key]

        article_id = local.remote_id
        if article_id is not None:
            await self.client.put_json(
                f"blogs/{blog['id']}/articles/{article_id}.json",
                {"article": article},
                resource=self.name,
            )
        else:
            await self.client.post_json(
                f"blogs/{blog['id']}/articles.json", {"article": article}, resource=self.name
            )

    async def delete_remote(self, item: Item) -> None:
        await self.client.delete(
            f"blogs/{item['blog_id']}/articles/{item['id']}.json", resource=self.name
        )
