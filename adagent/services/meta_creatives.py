from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union

from adagent.config import settings
from adagent.schemas.agent_payload import AgentPayload, AssetData

logger = logging.getLogger("meta.launch")

CALL_TO_ACTION_TYPE = "SHOP_NOW"
CAROUSEL_MAX_CARDS = 10
CATALOG_DEFAULT_MESSAGE = "Check out our products!"


class ImageUploader(Protocol):
    def upload_image_from_url(self, *, ad_account_id: str, image_url: str) -> str: ...


def resolve_link_url(brief: Mapping[str, Any]) -> str:
    for key in ("website_url", "Website URL or social page"):
        value = brief.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return settings.META_DEFAULT_LINK_URL


def _call_to_action(link: str) -> dict[str, Any]:
    return {"type": CALL_TO_ACTION_TYPE, "value": {"link": link}}


def _strip_extension(file_name: str) -> str:
    stem, _ext = os.path.splitext(file_name)
    return stem or file_name


def _is_video(asset: AssetData) -> bool:
    return (asset.file_type or "").lower().startswith("video")


@dataclass(frozen=True)
class VideoCreative:
    kind = "video"

    page_id: str
    video_url: str
    title: str
    message: str
    link: str

    def object_story_spec(self, **_unused: Any) -> dict[str, Any]:
        return {
            "page_id": self.page_id,
            "video_data": {
                "video_url": self.video_url,
                "title": self.title,
                "message": self.message,
                "call_to_action": _call_to_action(self.link),
            },
        }


@dataclass(frozen=True)
class SingleImageCreative:
    kind = "single_image"

    page_id: str
    image_url: str
    name: str
    message: str
    link: str

    def object_story_spec(
        self,
        *,
        uploader: Optional[ImageUploader] = None,
        ad_account_id: Optional[str] = None,
        **_unused: Any,
    ) -> dict[str, Any]:
        link_data: dict[str, Any] = {
            "link": self.link,
            "message": self.message,
            "name": self.name,
            "call_to_action": _call_to_action(self.link),
        }
        image_hash = None
        if uploader is not None and ad_account_id:
            try:
                image_hash = uploader.upload_image_from_url(ad_account_id=ad_account_id, image_url=self.image_url)
            except Exception as exc:
                logger.warning(
                    "Image hash upload failed; falling back to image_url",
                    extra={"image_url": self.image_url, "error": str(exc)},
                )
        if image_hash:
            link_data["image_hash"] = image_hash
        else:
            link_data["image_url"] = self.image_url
        return {"page_id": self.page_id, "link_data": link_data}


@dataclass(frozen=True)
class CarouselCard:
    picture: str
    name: str


@dataclass(frozen=True)
class CarouselCreative:
    kind = "carousel"

    page_id: str
    cards: tuple[CarouselCard, ...]
    message: str
    link: str

    def object_story_spec(self, **_unused: Any) -> dict[str, Any]:
        return {
            "page_id": self.page_id,
            "link_data": {
                "link": self.link,
                "message": self.message,
                "child_attachments": [
                    {
                        "picture": card.picture,
                        "name": card.name,
                        "link": self.link,
                        "call_to_action": _call_to_action(self.link),
                    }
                    for card in self.cards
                ],
                "call_to_action": _call_to_action(self.link),
            },
        }


@dataclass(frozen=True)
class CatalogCreative:
    kind = "catalog"

    page_id: str
    product_set_id: str
    message: str
    description: str
    link: str

    def object_story_spec(self, **_unused: Any) -> dict[str, Any]:
        return {
            "page_id": self.page_id,
            "template_data": {
                "call_to_action": {"type": CALL_TO_ACTION_TYPE},
                "link": self.link,
                "message": self.message,
                "description": self.description,
            },
        }


Creative = Union[VideoCreative, SingleImageCreative, CarouselCreative, CatalogCreative]


class CreativeSelectionError(ValueError):
    pass


def select_creative(payload: AgentPayload, *, page_id: str, product_set_id: Optional[str] = None) -> Creative:
    link = resolve_link_url(payload.brief)
    message = payload.description or payload.campaign_name

    if payload.asset_type == "catalog":
        if not product_set_id:
            raise CreativeSelectionError("Catalog creatives require a product set.")
        return CatalogCreative(
            page_id=page_id,
            product_set_id=product_set_id,
            message=payload.description or CATALOG_DEFAULT_MESSAGE,
            description=payload.offer or "",
            link=link,
        )

    assets = [asset for asset in payload.assets if asset.file_url and asset.file_url.strip()]
    if not assets:
        raise CreativeSelectionError("All uploaded assets have empty URLs. Please re-upload your files.")

    primary = assets[0]
    if _is_video(primary):
        return VideoCreative(
            page_id=page_id,
            video_url=primary.file_url,
            title=payload.campaign_name,
            message=message,
            link=link,
        )
    images = [asset for asset in assets if not _is_video(asset)]
    if len(images) == 1:
        return SingleImageCreative(
            page_id=page_id,
            image_url=primary.file_url,
            name=payload.campaign_name,
            message=message,
            link=link,
        )
    cards = tuple(
        CarouselCard(picture=asset.file_url, name=_strip_extension(asset.file_name))
        for asset in images[:CAROUSEL_MAX_CARDS]
    )
    return CarouselCreative(page_id=page_id, cards=cards, message=message, link=link)


def build_creative_params(
    creative: Creative,
    *,
    campaign_name: str,
    uploader: Optional[ImageUploader] = None,
    ad_account_id: Optional[str] = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "name": f"{campaign_name} - Creative",
        "object_story_spec": creative.object_story_spec(uploader=uploader, ad_account_id=ad_account_id),
    }
    if isinstance(creative, CatalogCreative):
        params["product_set_id"] = creative.product_set_id
    return params
