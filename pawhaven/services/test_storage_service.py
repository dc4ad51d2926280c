# pawhaven/services/test_storage_service.py
import io
import os
import re

import pytest
from flask import Flask
from werkzeug.datastructures import FileStorage

from pawhaven.core.errors import BadRequest
from pawhaven.services.storage_service import StorageService


@pytest.fixture
def storage(tmp_path):
    app = Flask(__name__)
    app.config.update(UPLOAD_DIR=str(tmp_path / "files"), UPLOAD_MAX_FILES=2, UPLOAD_MAX_FILE_SIZE=10)
    service = StorageService()
    service.init_app(app)
    return service


def _file(name, content=b"img", mimetype="image/jpeg"):
    return FileStorage(stream=io.BytesIO(content), filename=name, content_type=mimetype)


def test_save_images_names_and_paths(storage):
    paths = storage.save_images([_file("Dog.JPG"), _file("cat.webp", mimetype="image/webp")])
    assert len(paths) == 2
    for path in paths:
        assert re.match(r"^/uploads/\d+-[0-9a-f]{20}\.(jpg|webp)$", path)
        assert os.path.exists(os.path.join(storage.upload_dir, path.rsplit("/", 1)[1]))


def test_empty_input_saves_nothing(storage):
    assert storage.save_images([]) == []
    assert storage.save_images([FileStorage(stream=io.BytesIO(b""), filename="")]) == []


def test_limits(storage):
    with pytest.raises(BadRequest):
        storage.save_images([_file("a.jpg"), _file("b.jpg"), _file("c.jpg")])
    with pytest.raises(BadRequest):
        storage.save_images([_file("a.gif", mimetype="image/gif")])
    with pytest.raises(BadRequest):
        storage.save_images([_file("big.png", content=b"x" * 11, mimetype="image/png")])
    assert os.listdir(storage.upload_dir) == []


def test_requires_init_app():
    with pytest.raises(RuntimeError):
        StorageService().save_images([_file("a.jpg")])
