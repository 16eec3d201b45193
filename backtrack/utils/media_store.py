import io
import logging
import os
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path

import boto3
from PIL import Image

from backtrack.core.errors import UploadError

logger = logging.getLogger(__name__)


def discard_local_file(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError as e:
        logger.warning(f"Could not remove temp file {path}: {e}")


def unique_name(local_path: str, ext: str = None) -> str:
    base, original_ext = os.path.splitext(os.path.basename(local_path))
    ext = ext or original_ext.lstrip(".") or "bin"

    ts = int(datetime.now(timezone.utc).timestamp())
    return f"{base}-{ts}-{uuid.uuid4().hex[:8]}.{ext}"


class MediaStore:
    """Uploads local files to durable storage and hands back a stable URL."""

    def upload(self, local_path: str, namespace: str) -> str:
        """Store ``local_path`` under ``namespace``; the local file is always removed."""
        try:
            url = self._store(local_path, namespace)
        except UploadError:
            raise
        except Exception as e:
            raise UploadError(f"Upload of {os.path.basename(local_path)} failed: {e}") from e
        finally:
            discard_local_file(local_path)

        logger.info(f"Uploaded {url}")
        return url

    def delete(self, url: str) -> None:
        """Best-effort removal; failures are logged, never raised."""
        try:
            self._remove(url)
        except Exception as e:
            logger.warning(f"Error deleting media object {url}: {e}")

    def _store(self, local_path: str, namespace: str) -> str:
        raise NotImplementedError

    def _remove(self, url: str) -> None:
        raise NotImplementedError


class LocalMediaStore(MediaStore):
    def __init__(self, root: str, base_url: str = "/uploads"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _store(self, local_path: str, namespace: str) -> str:
        target_dir = self.root / namespace
        target_dir.mkdir(parents=True, exist_ok=True)

        name = unique_name(local_path)
        shutil.copyfile(local_path, target_dir / name)

        return f"{self.base_url}/{namespace}/{name}"

    def _remove(self, url: str) -> None:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            raise ValueError("URL does not belong to this store")

        os.remove(self.root / url[len(prefix):])


IMAGE_FORMATS = (
    ("WEBP", "webp", "image/webp", {"method": 6}),
    ("JPEG", "jpg", "image/jpeg", {"optimize": True}),
)


def compress_image(data: bytes, max_width=1400, quality=80, formats=IMAGE_FORMATS):
    """Downscale to ``max_width`` and encode with the first format Pillow can write.

    Returns ``(buffer, ext, mime)``.
    """
    img = Image.open(io.BytesIO(data)).convert("RGB")
    if img.width > max_width:
        img = img.resize((max_width, round(img.height * max_width / img.width)), Image.LANCZOS)

    for fmt, ext, mime, options in formats:
        buffer = io.BytesIO()
        try:
            img.save(buffer, format=fmt, quality=quality, **options)
        except (OSError, KeyError) as e:
            logger.warning(f"Encoding as {fmt} failed: {e}")
            continue

        buffer.seek(0)
        return buffer, ext, mime

    raise UploadError("Image could not be encoded")


class S3MediaStore(MediaStore):
    def __init__(self, client, bucket: str, folder: str, base_url: str):
        self.client = client
        self.bucket = bucket
        self.folder = folder.strip("/")
        self.base_url = base_url.rstrip("/")

    def _store(self, local_path: str, namespace: str) -> str:
        with open(local_path, "rb") as f:
            buffer, ext, mime = compress_image(f.read())

        key = f"{self.folder}/{namespace}/{unique_name(local_path, ext)}"
        self.client.upload_fileobj(buffer, self.bucket, key, ExtraArgs={"ContentType": mime})

        return f"{self.base_url}/{key}"

    def _remove(self, url: str) -> None:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            raise ValueError("URL does not belong to this bucket")

        self.client.delete_object(Bucket=self.bucket, Key=url[len(prefix):])


def build_media_store(settings) -> MediaStore:
    if settings.media_backend == "s3":
        client = boto3.client(
            service_name="s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name="auto",
        )
        return S3MediaStore(client, settings.s3_bucket, settings.s3_folder, settings.media_base_url)

    if settings.media_backend == "local":
        return LocalMediaStore(settings.upload_dir, settings.media_base_url)

    raise ValueError(f"Unknown media backend '{settings.media_backend}'")
