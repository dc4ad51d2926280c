# pawhaven/services/storage_service.py
import os
import secrets
import logging
from typing import Iterable, List

from flask import Flask
from werkzeug.datastructures import FileStorage

from pawhaven.core.errors import BadRequest
from pawhaven.utils.datetime_utils import DateTimeUtils

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}
PUBLIC_PREFIX = "/uploads"


class StorageService:
    """
    Stores uploaded listing photos on local disk.

    Callers receive stable relative paths ("/uploads/<name>") which are what
    gets persisted on the listing; the files themselves are served by the
    /uploads route registered in create_app.
    """

    def __init__(self):
        """Real settings are injected by init_app."""
        self.upload_dir = None
        self.max_files = 5
        self.max_file_size = 5 * 1024 * 1024

    def init_app(self, app: Flask):
        """
        Called once from create_app; resolves and creates the upload directory.

        :param app: Flask application
        """
        upload_dir = app.config.get('UPLOAD_DIR') or 'uploads'
        if not os.path.isabs(upload_dir):
            upload_dir = os.path.join(os.path.dirname(app.root_path), upload_dir)
        os.makedirs(upload_dir, exist_ok=True)
        self.upload_dir = upload_dir
        self.max_files = int(app.config.get('UPLOAD_MAX_FILES', 5))
        self.max_file_size = int(app.config.get('UPLOAD_MAX_FILE_SIZE', 5 * 1024 * 1024))
        logging.info(f"StorageService: saving uploads under {self.upload_dir}")

    @staticmethod
    def _size_of(file: FileStorage) -> int:
        stream = file.stream
        position = stream.tell()
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(position)
        return size

    def _check(self, files: List[FileStorage]) -> None:
        if len(files) > self.max_files:
            raise BadRequest(f"At most {self.max_files} photos can be uploaded at once",
                             errors=[{"field": "photos", "message": "Too many files"}])
        for file in files:
            if (file.mimetype or "").lower() not in ALLOWED_IMAGE_TYPES:
                raise BadRequest("Only JPEG/PNG/WebP images are allowed",
                                 errors=[{"field": "photos", "message": f"{file.filename}: unsupported type"}])
            if self._size_of(file) > self.max_file_size:
                raise BadRequest("Uploaded file is too large",
                                 errors=[{"field": "photos", "message": f"{file.filename}: exceeds {self.max_file_size} bytes"}])

    def save_images(self, files: Iterable[FileStorage]) -> List[str]:
        """
        Validate then persist listing photos.

        :param files: uploaded files from the 'photos' multipart field
        :return: relative paths in upload order
        """
        if not self.upload_dir:
            raise RuntimeError("StorageService is not initialised. Call init_app first.")

        files = [f for f in files if f and f.filename]
        if not files:
            return []
        self._check(files)

        paths = []
        for file in files:
            extension = os.path.splitext(file.filename)[1].lower()
            name = f"{DateTimeUtils.to_timestamp_ms(DateTimeUtils.now())}-{secrets.token_hex(10)}{extension}"
            file.save(os.path.join(self.upload_dir, name))
            paths.append(f"{PUBLIC_PREFIX}/{name}")
        logging.info(f"Stored {len(paths)} uploaded photo(s)")
        return paths
