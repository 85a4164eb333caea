# utils/storage.py
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

from config import settings

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}
URL_PREFIX = "/uploads/"


class BlobStorage:
    """Photo store on the local filesystem.

    Blobs are addressed by the public path they are served under
    (``/uploads/<name>``), which is what inventory rows keep in ``photo``.
    Deletes can be staged: the file is moved into ``.trash`` and either purged
    or restored once the caller knows whether its database write went through.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.trash = self.root / ".trash"

    def _ensure_dirs(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.trash.mkdir(parents=True, exist_ok=True)

    def path_for(self, url: str) -> Optional[Path]:
        if not url or not url.startswith(URL_PREFIX):
            return None
        # Only the final component, never a path outside root
        name = Path(url).name
        if not name or name.startswith("."):
            return None
        return self.root / name

    def exists(self, url: str) -> bool:
        path = self.path_for(url)
        return path is not None and path.exists()

    def save(self, file: UploadFile) -> str:
        if file.content_type not in ALLOWED_CONTENT_TYPES:
            raise HTTPException(status_code=400, detail="Invalid file type")

        self._ensure_dirs()
        ext = ALLOWED_CONTENT_TYPES[file.content_type]
        unique_filename = f"{uuid.uuid4().hex}.{ext}"
        save_path = self.root / unique_filename
        try:
            with open(save_path, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)
        except OSError as e:
            logger.exception("Failed to store upload %s", unique_filename)
            save_path.unlink(missing_ok=True)
            raise HTTPException(status_code=500, detail=f"File save error: {e}")
        finally:
            file.file.close()

        if save_path.stat().st_size == 0:
            save_path.unlink(missing_ok=True)
            raise HTTPException(status_code=400, detail="Failed to read image data")

        logger.info("Stored photo %s", unique_filename)
        return f"{URL_PREFIX}{unique_filename}"

    def delete(self, url: str) -> bool:
        path = self.path_for(url)
        if path is None or not path.exists():
            return False
        path.unlink()
        logger.info("Deleted photo %s", path.name)
        return True

    def stage_delete(self, url: str) -> Optional[Path]:
        """Move the blob aside; returns the staged path, or None when there was nothing to move."""
        path = self.path_for(url)
        if path is None or not path.exists():
            return None
        self._ensure_dirs()
        staged = self.trash / f"{uuid.uuid4().hex}-{path.name}"
        path.replace(staged)
        return staged

    def restore(self, staged: Optional[Path], url: str) -> None:
        path = self.path_for(url)
        if staged is None or path is None:
            return
        staged.replace(path)
        logger.warning("Restored photo %s after failed delete", path.name)

    def purge(self, staged: Optional[Path]) -> None:
        if staged is None:
            return
        staged.unlink(missing_ok=True)


def get_storage() -> BlobStorage:
    return BlobStorage(Path(settings.UPLOAD_DIR))
