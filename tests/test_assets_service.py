import pytest

from adagent.db.models import CampaignAsset
from adagent.db.repositories.assets import AssetsRepository
from adagent.services.assets import (
    AssetNotFoundError,
    AssetUploadError,
    delete_asset,
    resolve_content_type,
    upload_asset,
)

from conftest import TEST_USER_ID


def test_upload_stores_object_then_row(db_session, campaign, fake_storage):
    asset = upload_asset(
        session=db_session,
        user_id=TEST_USER_ID,
        campaign_id=campaign.id,
        content_bytes=b"image-bytes",
        filename="hero.jpg",
        content_type="image/jpeg",
        storage=fake_storage,
    )

    assert asset.file_name == "hero.jpg"
    assert asset.file_type == "image/jpeg"
    assert asset.file_size == len(b"image-bytes")
    assert asset.storage_path.startswith(f"test/{TEST_USER_ID}/{campaign.id}/")
    assert asset.storage_path.endswith("_hero.jpg")
    assert asset.public_url == f"https://cdn.example.test/{asset.storage_path}"
    assert fake_storage.objects[asset.storage_path] == b"image-bytes"


def test_unlinked_upload_uses_unlinked_folder(db_session, fake_storage):
    asset = upload_asset(
        session=db_session,
        user_id=TEST_USER_ID,
        campaign_id=None,
        content_bytes=b"x",
        filename="logo.png",
        content_type="image/png",
        storage=fake_storage,
    )

    assert "/unlinked/" in asset.storage_path
    assert asset.campaign_id is None


def test_empty_upload_is_rejected_before_storage(db_session, campaign, fake_storage):
    with pytest.raises(AssetUploadError):
        upload_asset(
            session=db_session,
            user_id=TEST_USER_ID,
            campaign_id=campaign.id,
            content_bytes=b"",
            filename="empty.jpg",
            content_type="image/jpeg",
            storage=fake_storage,
        )

    assert fake_storage.objects == {}


def test_failed_insert_removes_stored_object(db_session, campaign, fake_storage, monkeypatch):
    def failing_create(self, **fields):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(AssetsRepository, "create", failing_create)

    with pytest.raises(RuntimeError, match="insert failed"):
        upload_asset(
            session=db_session,
            user_id=TEST_USER_ID,
            campaign_id=campaign.id,
            content_bytes=b"video-bytes",
            filename="promo.mp4",
            content_type="video/mp4",
            storage=fake_storage,
        )

    assert fake_storage.objects == {}
    assert len(fake_storage.deleted) == 1


@pytest.mark.parametrize(
    "content_type,filename,expected",
    [
        ("image/png; charset=binary", "a.png", "image/png"),
        (None, "clip.MOV", "video/mov"),
        ("", "photo.jpeg", "image/jpeg"),
        (None, "brochure.pdf", "application/pdf"),
        (None, "noextension", "application/octet-stream"),
    ],
)
def test_resolve_content_type(content_type, filename, expected):
    assert resolve_content_type(content_type, filename) == expected


def test_delete_removes_object_and_row(db_session, image_asset, fake_storage):
    asset_id = image_asset.id
    storage_path = image_asset.storage_path

    delete_asset(session=db_session, user_id=TEST_USER_ID, asset_id=asset_id, storage=fake_storage)

    assert fake_storage.deleted == [storage_path]
    assert db_session.get(CampaignAsset, asset_id) is None


def test_delete_keeps_going_when_storage_fails(db_session, image_asset, fake_storage):
    asset_id = image_asset.id
    fake_storage.fail_delete = True

    delete_asset(session=db_session, user_id=TEST_USER_ID, asset_id=asset_id, storage=fake_storage)

    assert db_session.get(CampaignAsset, asset_id) is None


def test_delete_without_storage_removes_row(db_session, image_asset):
    asset_id = image_asset.id

    delete_asset(session=db_session, user_id=TEST_USER_ID, asset_id=asset_id, storage=None)

    assert db_session.get(CampaignAsset, asset_id) is None


def test_delete_missing_asset(db_session, fake_storage):
    with pytest.raises(AssetNotFoundError):
        delete_asset(session=db_session, user_id=TEST_USER_ID, asset_id="missing", storage=fake_storage)


def test_delete_is_scoped_to_owner(db_session, image_asset, fake_storage):
    with pytest.raises(AssetNotFoundError):
        delete_asset(session=db_session, user_id="someone-else", asset_id=image_asset.id, storage=fake_storage)
