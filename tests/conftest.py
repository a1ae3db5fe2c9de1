import os
import sys
from pathlib import Path
from typing import Any, Optional

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("SUPABASE_JWKS_URL", None)
os.environ["SUPABASE_JWT_SECRET"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402

from adagent.auth.dependencies import AuthContext, get_current_user  # noqa: E402
from adagent.db.base import Base, SessionLocal, engine  # noqa: E402
from adagent.db.deps import get_session  # noqa: E402
from adagent.db.models import Campaign, CampaignAsset, ClientBrief, MetaConnection  # noqa: E402
from adagent.main import app  # noqa: E402
from adagent.routers.assets import get_media_storage, get_optional_media_storage  # noqa: E402
from adagent.routers.meta_campaigns import get_meta_client_factory  # noqa: E402
from adagent.services.meta_ads import MetaAdsError  # noqa: E402


TEST_USER_ID = "test-user"


class FakeMetaClient:
    """Records every Graph call; failures are scripted per method name."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}
        self.delete_failures: dict[str, Exception] = {}
        self.product_sets: list[dict[str, Any]] = [{"id": "ps_1", "name": "All products"}]
        self.image_hash: Optional[str] = "hash_1"

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append((method, kwargs))
        failure = self.failures.get(method)
        if failure is not None:
            raise failure

    def called(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    @property
    def method_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def get_me(self) -> dict[str, Any]:
        self._record("get_me")
        return {"id": "me_1", "name": "Tester"}

    def list_product_sets(self, *, catalog_id: str) -> dict[str, Any]:
        self._record("list_product_sets", catalog_id=catalog_id)
        return {"data": list(self.product_sets)}

    def upload_image_from_url(self, *, ad_account_id: str, image_url: str) -> str:
        self._record("upload_image_from_url", ad_account_id=ad_account_id, image_url=image_url)
        if not self.image_hash:
            raise MetaAdsError("Meta image upload response did not include an image hash.")
        return self.image_hash

    def create_campaign(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._record("create_campaign", ad_account_id=ad_account_id, payload=payload)
        return {"id": "cmp_1"}

    def create_adset(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._record("create_adset", ad_account_id=ad_account_id, payload=payload)
        return {"id": "adset_1"}

    def create_adcreative(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._record("create_adcreative", ad_account_id=ad_account_id, payload=payload)
        return {"id": "creative_1"}

    def create_ad(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._record("create_ad", ad_account_id=ad_account_id, payload=payload)
        return {"id": "ad_1"}

    def delete_object(self, *, object_id: str) -> dict[str, Any]:
        self.calls.append(("delete_object", {"object_id": object_id}))
        failure = self.delete_failures.get(object_id)
        if failure is not None:
            raise failure
        return {"success": True}


class FakeMediaStorage:
    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_delete = False

    def build_key(self, *, user_id: str, campaign_id: Optional[str], filename: str, timestamp_ms: int) -> str:
        return f"test/{user_id}/{campaign_id or 'unlinked'}/{timestamp_ms}_{filename}"

    def upload_bytes(self, *, key: str, data: bytes, content_type: Optional[str]) -> None:
        self.objects[key] = data

    def delete_object(self, *, key: str) -> None:
        if self.fail_delete:
            raise RuntimeError("storage unavailable")
        self.deleted.append(key)
        self.objects.pop(key, None)

    def public_url(self, key: str) -> str:
        return f"https://cdn.example.test/{key}"


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def auth_context() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID)


@pytest.fixture()
def fake_meta_client() -> FakeMetaClient:
    return FakeMetaClient()


@pytest.fixture()
def fake_storage() -> FakeMediaStorage:
    return FakeMediaStorage()


@pytest.fixture()
def override_dependencies(db_session, auth_context, fake_meta_client, fake_storage):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    def get_user_override():
        return auth_context

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_current_user] = get_user_override
    app.dependency_overrides[get_meta_client_factory] = lambda: (lambda _token: fake_meta_client)
    app.dependency_overrides[get_media_storage] = lambda: fake_storage
    app.dependency_overrides[get_optional_media_storage] = lambda: fake_storage
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def api_client(override_dependencies):
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def meta_connection(db_session) -> MetaConnection:
    connection = MetaConnection(
        user_id=TEST_USER_ID,
        ad_account_id="act_123",
        access_token="tok",
        page_id="page_1",
        page_name="Test Page",
        is_connected=True,
    )
    db_session.add(connection)
    db_session.commit()
    db_session.refresh(connection)
    return connection


@pytest.fixture()
def campaign(db_session) -> Campaign:
    record = Campaign(user_id=TEST_USER_ID, name="Spring Sale", objective="sales")
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture()
def image_asset(db_session, campaign) -> CampaignAsset:
    asset = CampaignAsset(
        user_id=TEST_USER_ID,
        campaign_id=campaign.id,
        file_name="hero.jpg",
        file_type="image/jpeg",
        file_size=1024,
        storage_path=f"test/{TEST_USER_ID}/{campaign.id}/1_hero.jpg",
        public_url="https://cdn.example.test/hero.jpg",
    )
    db_session.add(asset)
    db_session.commit()
    db_session.refresh(asset)
    return asset


@pytest.fixture()
def brief(db_session) -> ClientBrief:
    record = ClientBrief(
        user_id=TEST_USER_ID,
        version_number=1,
        data={
            "target_locations": "Egypt, Saudi Arabia",
            "age_range": "25-45",
            "gender": "female",
            "website_url": "https://shop.example.test",
        },
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record
