from __future__ import annotations

import asyncio
import pathlib
from typing import Optional, Protocol

import httpx

from .utils import read_text, warn, write_text_atomic


class DocumentStore(Protocol):
    """Text blobs addressed by virtual path (``/content/...``).

    ``read`` returns None when the blob does not exist, which is distinct
    from an existing empty document.
    """

    async def read(self, path: str) -> Optional[str]: ...


class FileDocumentStore:
    """Virtual paths resolved under a public directory on disk."""

    def __init__(self, root: pathlib.Path) -> None:
        self.root = pathlib.Path(root)

    def resolve(self, path: str) -> pathlib.Path:
        rel = pathlib.PurePosixPath(path.lstrip("/"))
        if ".." in rel.parts:
            raise ValueError(f"path escapes the store root: {path}")
        return self.root.joinpath(*rel.parts)

    def read_sync(self, path: str) -> Optional[str]:
        try:
            return read_text(self.resolve(path))
        except (OSError, UnicodeDecodeError, ValueError) as e:
            warn(f"failed to read {path}: {e}")
            return None

    async def read(self, path: str) -> Optional[str]:
        return await asyncio.to_thread(self.read_sync, path)

    def write(self, path: str, text: str) -> None:
        write_text_atomic(self.resolve(path), text)

    def exists(self, path: str) -> bool:
        try:
            return self.resolve(path).is_file()
        except ValueError:
            return False


class HttpDocumentStore:
    """Virtual paths fetched from a running site, e.g. a dev server."""

    def __init__(
        self, base_url: str, client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url)

    async def read(self, path: str) -> Optional[str]:
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as e:
            warn(f"error fetching {path}: {e}")
            return None
        if response.status_code != 200:
            warn(f"failed to fetch {path}: {response.status_code}")
            return None
        return response.text

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpDocumentStore":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
