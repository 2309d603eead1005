from io import BytesIO

import pytest
from PIL import Image

from fakes import make_user
from hrims.core.exceptions import ValidationError

AVATAR = "/api/v1/auth/avatar"


def _image_bytes(size=(600, 400), fmt="PNG"):
    buffer = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def user(users_repo):
    return users_repo.add(make_user(0, username="cbanda", password_hash="x"))


def test_avatar_is_stored_as_thumbnail(container, users_repo, user):
    updated = container.avatar_service.save(user.user_id, BytesIO(_image_bytes(fmt="JPEG")))

    assert updated.avatar_url.startswith(AVATAR + "/")
    assert users_repo.get_by_id(user.user_id).avatar_url == updated.avatar_url

    stored = container.avatar_service.directory / updated.avatar_url.rsplit("/", 1)[-1]
    with Image.open(stored) as img:
        assert img.format == "PNG"
        assert max(img.size) == 256


def test_replacing_avatar_removes_previous_file(container, user):
    first = container.avatar_service.save(user.user_id, BytesIO(_image_bytes()))
    second = container.avatar_service.save(user.user_id, BytesIO(_image_bytes()))

    files = sorted(p.name for p in container.avatar_service.directory.iterdir())
    assert files == [second.avatar_url.rsplit("/", 1)[-1]]
    assert first.avatar_url != second.avatar_url


@pytest.mark.parametrize("payload", [b"", b"not an image"])
def test_non_images_are_refused(container, user, payload):
    with pytest.raises(ValidationError):
        container.avatar_service.save(user.user_id, BytesIO(payload))


def test_oversized_upload_is_refused(container, user, monkeypatch):
    monkeypatch.setattr("hrims.auth.avatar.AVATAR_MAX_BYTES", 10)

    with pytest.raises(ValidationError, match="larger than"):
        container.avatar_service.save(user.user_id, BytesIO(_image_bytes()))


def test_failed_save_leaves_no_file(container, users_repo, user, monkeypatch):
    def broken_update(_user):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(users_repo, "update", broken_update)

    with pytest.raises(RuntimeError):
        container.avatar_service.save(user.user_id, BytesIO(_image_bytes()))
    assert list(container.avatar_service.directory.iterdir()) == []


def test_upload_route_and_served_file(client, auth_header):
    headers = auth_header()

    resp = client.post(
        AVATAR,
        data={"avatar": (BytesIO(_image_bytes()), "me.png")},
        headers=headers,
        content_type="multipart/form-data",
    )

    assert resp.status_code == 200
    url = resp.get_json()["data"]["avatarUrl"]
    served = client.get(url)
    assert served.status_code == 200
    assert served.mimetype == "image/png"

    profile = client.get("/api/v1/auth/profile", headers=headers).get_json()["data"]
    assert profile["avatarUrl"] == url


def test_upload_route_requires_file(client, auth_header):
    resp = client.post(AVATAR, data={}, headers=auth_header(), content_type="multipart/form-data")

    assert resp.status_code == 400


def test_unknown_avatar_file_is_404(client):
    assert client.get(f"{AVATAR}/missing.png").status_code == 404
