import os
import tempfile
from typing import List, Optional

from fastapi import UploadFile

from backtrack.core.errors import ValidationError
from backtrack.utils.media_store import discard_local_file

ALLOWED_TYPES = {"image/jpeg": ".jpg", "image/jpg": ".jpg", "image/png": ".png"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}


async def spool_uploads(files: Optional[List[UploadFile]], settings) -> List[str]:
    """Write multipart images to local temp files and return their paths.

    Nothing is left on disk if any file is rejected.
    """
    files = [f for f in files or [] if f.filename]

    if len(files) > settings.max_images:
        raise ValidationError(f"At most {settings.max_images} images are allowed")

    paths = []
    try:
        for image in files:
            ext = os.path.splitext(image.filename)[1].lower()
            if image.content_type not in ALLOWED_TYPES or ext not in ALLOWED_EXTENSIONS:
                raise ValidationError("File upload only supports JPEG, JPG, and PNG images")

            raw_bytes = await image.read()
            if len(raw_bytes) > settings.max_upload_bytes:
                raise ValidationError(f"Image exceeds {settings.max_upload_size_mb}MB limit")

            base = os.path.splitext(os.path.basename(image.filename))[0]
            fd, path = tempfile.mkstemp(prefix=f"{base}-", suffix=ext)
            with os.fdopen(fd, "wb") as f:
                f.write(raw_bytes)
            paths.append(path)
    except ValidationError:
        for path in paths:
            discard_local_file(path)
        raise

    return paths
