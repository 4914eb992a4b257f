import uuid
from pathlib import Path
from typing import Iterable, Optional

from fastapi import UploadFile
from loguru import logger

from eventhub.exceptions import ValidationFailedError


EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class ImageStorage:
    """Event images on local disk, referenced publicly as /uploads/<name>"""

    def __init__(
        self,
        upload_dir: Path,
        max_bytes: int,
        allowed_types: Iterable[str],
        url_prefix: str = "/uploads",
    ):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.allowed_types = set(allowed_types)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, upload: UploadFile) -> str:
        if upload.content_type not in self.allowed_types:
            raise ValidationFailedError(
                [{"field": "image", "message": "Only image files are allowed"}]
            )

        data = upload.file.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise ValidationFailedError(
                [
                    {
                        "field": "image",
                        "message": f"Image must be at most {self.max_bytes} bytes",
                    }
                ]
            )

        suffix = Path(upload.filename or "").suffix.lower() or EXTENSIONS.get(
            upload.content_type, ""
        )
        name = f"image-{uuid.uuid4().hex}{suffix}"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        (self.upload_dir / name).write_bytes(data)
        logger.debug(f"Stored upload {upload.filename!r} as {name}")
        return f"{self.url_prefix}/{name}"

    def delete(self, ref: Optional[str]) -> None:
        """Remove a stored image; unknown or missing references are ignored"""
        if not ref or not ref.startswith(f"{self.url_prefix}/"):
            return
        path = self.upload_dir / Path(ref).name
        if path.exists():
            path.unlink()
            logger.debug(f"Deleted image {path.name}")
