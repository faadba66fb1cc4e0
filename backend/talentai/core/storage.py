# backend/talentai/core/storage.py
"""
File storage for uploaded resumes/videos.

Optional collaborator: NullStorage (default) keeps nothing and returns no URL;
LocalStorage copies the file under STORAGE_DIR and returns STORAGE_BASE_URL/<key>.
Storage failures are logged and yield None so the pipeline keeps going.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from .config import STORAGE_BASE_URL, STORAGE_DIR

logger = logging.getLogger(__name__)


class NullStorage:
    enabled = False

    def store(self, local_path: Path, key: str) -> Optional[str]:
        return None


class LocalStorage:
    enabled = True

    def __init__(self, root: str, base_url: str = "/files") -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def store(self, local_path: Path, key: str) -> Optional[str]:
        dst = self.root / key
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, dst)
        except OSError as e:
            logger.error("Error storing %s: %s", key, e)
            return None
        return f"{self.base_url}/{key}"


def build_storage():
    if STORAGE_DIR:
        logger.info("Local file storage enabled: %s", STORAGE_DIR)
        return LocalStorage(STORAGE_DIR, STORAGE_BASE_URL)
    logger.info("File storage not configured; uploads are not retained.")
    return NullStorage()


__all__ = ["NullStorage", "LocalStorage", "build_storage"]
