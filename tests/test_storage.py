from __future__ import annotations

import io

import pytest

from seva_sarthi.core.exceptions import ValidationError
from seva_sarthi.storage.service import FileStorageService


def test_saves_under_user_folder(tmp_path):
    storage = FileStorageService(tmp_path)

    url = storage.save_profile_photo(
        user_id="../../etc", filename="../My Photo.JPG", stream=io.BytesIO(b"jpeg"), content_type="image/jpeg", size=4
    )

    assert url.startswith("/uploads/profile-photos/etc/")
    assert url.endswith(".jpg")
    saved = list((tmp_path / "profile-photos").rglob("*.jpg"))
    assert len(saved) == 1
    assert saved[0].read_bytes() == b"jpeg"


def test_size_limit_is_configurable(tmp_path):
    storage = FileStorageService(tmp_path, max_photo_bytes=10)

    with pytest.raises(ValidationError):
        storage.save_profile_photo(
            user_id="u1", filename="a.png", stream=io.BytesIO(b"x" * 11), content_type="image/png", size=11
        )
    assert not (tmp_path / "profile-photos").exists()


def test_custom_public_prefix(tmp_path):
    storage = FileStorageService(tmp_path, public_prefix="/media/")
    url = storage.save_profile_photo(
        user_id="u1", filename="a.webp", stream=io.BytesIO(b"w"), content_type="image/webp", size=1
    )
    assert url.startswith("/media/profile-photos/u1/")


@pytest.mark.parametrize("filename", ["evil.html", "vector.svg", "noext", "shell.php"])
def test_rejects_non_image_filenames_even_with_image_content_type(tmp_path, filename):
    storage = FileStorageService(tmp_path)

    with pytest.raises(ValidationError):
        storage.save_profile_photo(
            user_id="u1", filename=filename, stream=io.BytesIO(b"<script>"), content_type="image/png", size=8
        )
    assert not (tmp_path / "profile-photos").exists()


def test_stored_extension_follows_content_type(tmp_path):
    storage = FileStorageService(tmp_path)

    url = storage.save_profile_photo(
        user_id="u1", filename="holiday.jpeg", stream=io.BytesIO(b"png"), content_type="image/png", size=3
    )

    assert url.endswith(".png")
