from __future__ import annotations

import json
import logging
import mimetypes
from typing import Any, Optional

import httpx

from adagent.config import settings

logger = logging.getLogger("meta.ads")


class MetaAdsConfigError(RuntimeError):
    pass


class MetaAdsError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None, error_payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_payload = error_payload

    @property
    def platform_message(self) -> str:
        """Human-readable reason reported by Meta, falling back to the generic message."""
        payload = self.error_payload
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            for key in ("message", "error_user_msg"):
                value = error.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
        return str(self)


def normalize_ad_account_id(ad_account_id: str) -> str:
    if ad_account_id.startswith("act_"):
        return ad_account_id
    return f"act_{ad_account_id}"


def _encode_payload(payload: dict[str, Any]) -> dict[str, Any]:
    encoded: dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
            continue
        if isinstance(value, (dict, list)):
            encoded[key] = json.dumps(value)
            continue
        encoded[key] = value
    return encoded


class MetaAdsClient:
    def __init__(
        self,
        *,
        access_token: str,
        api_version: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        if not access_token:
            raise MetaAdsConfigError("An access token is required to call the Meta Graph API.")
        self.access_token = access_token
        self.api_version = api_version or settings.META_GRAPH_API_VERSION
        self.base_url = (base_url or settings.META_GRAPH_API_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(timeout or settings.META_REQUEST_TIMEOUT_SECONDS)

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        data: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/{self.api_version}/{path.lstrip('/')}"
        merged_params = {**(params or {}), "access_token": self.access_token}
        logger.debug("Meta Graph request", extra={"method": method, "path": path})
        try:
            response = httpx.request(
                method,
                url,
                params=merged_params,
                data=data,
                files=files,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            error_payload: Any = None
            try:
                error_payload = response.json()
            except Exception:
                error_payload = {"text": response.text}
            message = f"Meta Graph API error ({response.status_code})."
            raise MetaAdsError(message, status_code=response.status_code, error_payload=error_payload) from exc
        except httpx.TimeoutException as exc:
            message = f"Meta Graph API request timed out: {path}"
            raise MetaAdsError(message) from exc
        except httpx.RequestError as exc:
            message = f"Meta Graph API request failed: {exc}"
            raise MetaAdsError(message) from exc

        try:
            body = response.json()
        except Exception as exc:
            message = "Meta Graph API returned a non-JSON response."
            raise MetaAdsError(message) from exc

        # Graph occasionally answers 200 with an error envelope.
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            raise MetaAdsError(
                f"Meta Graph API error ({response.status_code}).",
                status_code=response.status_code,
                error_payload=body,
            )
        return body

    def get_me(self) -> dict[str, Any]:
        return self._request("GET", "me", params={"fields": "id,name"})

    def list_product_sets(self, *, catalog_id: str) -> dict[str, Any]:
        return self._request("GET", f"{catalog_id}/product_sets", params={"fields": "id,name"})

    def upload_image(
        self,
        *,
        ad_account_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        name: Optional[str] = None,
    ) -> dict[str, Any]:
        path = f"{normalize_ad_account_id(ad_account_id)}/adimages"
        data = _encode_payload({"name": name}) if name else None
        files = {
            "filename": (
                filename,
                content,
                content_type or "application/octet-stream",
            )
        }
        return self._request("POST", path, data=data, files=files)

    def upload_image_from_url(self, *, ad_account_id: str, image_url: str) -> str:
        """Download a public image and register it with the ad account; returns the image hash."""
        try:
            download = httpx.get(image_url, timeout=self.timeout, follow_redirects=True)
            download.raise_for_status()
        except httpx.HTTPError as exc:
            raise MetaAdsError(f"Failed to download image from {image_url}: {exc}") from exc

        content_type = download.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        ext = mimetypes.guess_extension(content_type) or ".jpg"
        response = self.upload_image(
            ad_account_id=ad_account_id,
            filename=f"ad_image{ext}",
            content=download.content,
            content_type=content_type,
        )
        images = response.get("images") if isinstance(response, dict) else None
        if not images or not isinstance(images, dict):
            raise MetaAdsError("Meta image upload response did not include images data.", error_payload=response)
        first_key = next(iter(images))
        image_data = images.get(first_key)
        image_hash = image_data.get("hash") if isinstance(image_data, dict) else None
        if not image_hash:
            raise MetaAdsError("Meta image upload response did not include an image hash.", error_payload=response)
        return image_hash

    def create_adcreative(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        path = f"{normalize_ad_account_id(ad_account_id)}/adcreatives"
        return self._request("POST", path, data=_encode_payload(payload))

    def create_campaign(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        path = f"{normalize_ad_account_id(ad_account_id)}/campaigns"
        return self._request("POST", path, data=_encode_payload(payload))

    def create_adset(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        path = f"{normalize_ad_account_id(ad_account_id)}/adsets"
        return self._request("POST", path, data=_encode_payload(payload))

    def create_ad(self, *, ad_account_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        path = f"{normalize_ad_account_id(ad_account_id)}/ads"
        return self._request("POST", path, data=_encode_payload(payload))

    def delete_object(self, *, object_id: str) -> dict[str, Any]:
        return self._request("POST", object_id, data=_encode_payload({"status": "DELETED"}))
