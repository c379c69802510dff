from typing import Protocol


class BlobStore(Protocol):
    """Opaque key/value object storage the file service writes blobs to."""

    def put(self, *, key: str, data: bytes, content_type: str, metadata: dict[str, str] | None = None) -> None: ...

    def signed_get_url(self, *, key: str, expires_in: int = 3600, filename: str | None = None) -> str: ...

    def delete(self, *, key: str) -> None: ...
