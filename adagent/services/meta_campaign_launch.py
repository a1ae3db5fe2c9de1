from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from adagent.db.enums import AssetTypeEnum, LaunchStepEnum
from adagent.schemas.agent_payload import AgentPayload
from adagent.services.meta_ads import MetaAdsClient, MetaAdsError, normalize_ad_account_id
from adagent.services.meta_creatives import (
    Creative,
    CreativeSelectionError,
    build_creative_params,
    select_creative,
)
from adagent.services.meta_targeting import (
    budget_to_minor_units,
    build_targeting,
    format_meta_datetime,
    map_objective,
    map_optimization_goal,
)

logger = logging.getLogger("meta.launch")

PAUSED = "PAUSED"
SUCCESS_MESSAGE = "Campaign created successfully! Status: PAUSED"


class CampaignStore(Protocol):
    def set_meta_ids(
        self,
        *,
        user_id: str,
        campaign_id: str,
        meta_campaign_id: str,
        meta_adset_id: str,
        meta_creative_id: str,
        meta_ad_id: str,
    ) -> bool: ...


@dataclass
class LaunchResult:
    success: bool
    message: Optional[str] = None
    data: Optional[dict[str, str]] = None
    error: Optional[str] = None
    step: Optional[str] = None
    created_campaign_id: Optional[str] = None

    def to_response(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "message": self.message, "data": self.data}
        body: dict[str, Any] = {"success": False, "error": self.error}
        if self.step:
            body["step"] = self.step
        if self.created_campaign_id:
            body["campaign_id_created"] = self.created_campaign_id
        return body


class _StepFailed(Exception):
    def __init__(self, step: LaunchStepEnum, message: str) -> None:
        super().__init__(message)
        self.step = step
        self.message = message


@dataclass
class _LaunchPlan:
    ad_account_id: str
    page_id: str
    creative: Creative
    daily_budget: int
    product_set_id: Optional[str] = None
    created: list[tuple[str, str]] = field(default_factory=list)


def _require_id(response: Any, *, step: LaunchStepEnum, resource: str) -> str:
    object_id = response.get("id") if isinstance(response, dict) else None
    if not object_id:
        raise _StepFailed(step, f"Meta {resource} response did not include an id.")
    return str(object_id)


def _check_connection(payload: AgentPayload) -> None:
    connection = payload.meta_connection
    if not connection.ad_account_id:
        raise _StepFailed(LaunchStepEnum.preflight, "Missing ad_account_id. Please connect your Meta account first.")
    if not connection.access_token:
        raise _StepFailed(LaunchStepEnum.preflight, "Missing access token. Please reconnect your Meta account.")


def _preflight(payload: AgentPayload, client: MetaAdsClient) -> _LaunchPlan:
    connection = payload.meta_connection
    try:
        client.get_me()
    except MetaAdsError as exc:
        if exc.status_code is not None:
            raise _StepFailed(
                LaunchStepEnum.preflight,
                f"Access token invalid: {exc.platform_message}. Please reconnect your Meta account.",
            ) from exc
        # Only a Graph response can invalidate the token.
        logger.warning("Access token verification skipped", extra={"error": str(exc)})

    page_id = payload.page_id or connection.page_id
    if not page_id:
        raise _StepFailed(
            LaunchStepEnum.preflight,
            "Missing Facebook Page. Please select a Page or reconnect your Meta account.",
        )

    try:
        daily_budget = budget_to_minor_units(payload.daily_budget)
    except ValueError as exc:
        raise _StepFailed(LaunchStepEnum.preflight, str(exc)) from exc

    product_set_id: Optional[str] = None
    if payload.asset_type == AssetTypeEnum.catalog.value:
        product_set_id = _resolve_product_set(payload, client)

    try:
        creative = select_creative(payload, page_id=page_id, product_set_id=product_set_id)
    except CreativeSelectionError as exc:
        raise _StepFailed(LaunchStepEnum.preflight, str(exc)) from exc

    return _LaunchPlan(
        ad_account_id=normalize_ad_account_id(connection.ad_account_id),
        page_id=page_id,
        creative=creative,
        daily_budget=daily_budget,
        product_set_id=product_set_id,
    )


def _resolve_product_set(payload: AgentPayload, client: MetaAdsClient) -> str:
    catalog_id = payload.catalog_id or payload.meta_connection.catalog_id
    if not catalog_id:
        raise _StepFailed(LaunchStepEnum.preflight, "No product catalog selected for a catalog campaign.")
    try:
        response = client.list_product_sets(catalog_id=catalog_id)
    except MetaAdsError as exc:
        raise _StepFailed(
            LaunchStepEnum.preflight, f"Failed to fetch product sets: {exc.platform_message}"
        ) from exc
    product_sets = response.get("data") if isinstance(response, dict) else None
    if not product_sets:
        raise _StepFailed(
            LaunchStepEnum.preflight,
            "No product sets found in catalog. Please add products to your catalog first.",
        )
    first = product_sets[0]
    logger.info(
        "Using first product set from catalog",
        extra={"catalog_id": catalog_id, "product_set_id": first.get("id"), "product_sets": len(product_sets)},
    )
    return str(first["id"])


def _campaign_params(payload: AgentPayload) -> dict[str, Any]:
    return {
        "name": payload.campaign_name,
        "objective": map_objective(payload.objective),
        "status": PAUSED,
        # Meta requires this param even when there is no special category.
        "special_ad_categories": ["NONE"],
    }


def _adset_params(payload: AgentPayload, plan: _LaunchPlan, *, meta_campaign_id: str) -> dict[str, Any]:
    params: dict[str, Any] = {
        "name": f"{payload.campaign_name} - Ad Set",
        "campaign_id": meta_campaign_id,
        "billing_event": "IMPRESSIONS",
        "optimization_goal": map_optimization_goal(payload.goal),
        "daily_budget": plan.daily_budget,
        "start_time": format_meta_datetime(payload.start_time),
        "targeting": build_targeting(payload.brief),
        "status": PAUSED,
    }
    if payload.end_time:
        params["end_time"] = format_meta_datetime(payload.end_time)

    promoted_object: dict[str, Any] = {}
    pixel_id = payload.meta_connection.pixel_id
    if pixel_id:
        promoted_object["pixel_id"] = pixel_id
        promoted_object["custom_event_type"] = "PURCHASE"
    if payload.asset_type == AssetTypeEnum.catalog.value and plan.product_set_id:
        promoted_object["product_catalog_id"] = payload.catalog_id or payload.meta_connection.catalog_id
        promoted_object["product_set_id"] = plan.product_set_id
    if promoted_object:
        params["promoted_object"] = promoted_object
    return params


def _ad_params(payload: AgentPayload, *, meta_adset_id: str, meta_creative_id: str) -> dict[str, Any]:
    return {
        "name": f"{payload.campaign_name} - Ad",
        "adset_id": meta_adset_id,
        "creative": {"creative_id": meta_creative_id},
        "status": PAUSED,
    }


def _rollback(client: MetaAdsClient, created: list[tuple[str, str]]) -> None:
    for resource, object_id in reversed(created):
        try:
            client.delete_object(object_id=object_id)
            logger.info("Rolled back Meta object", extra={"resource": resource, "object_id": object_id})
        except Exception:
            logger.exception(
                "Rollback failed; Meta object may be orphaned",
                extra={"resource": resource, "object_id": object_id},
            )


def _create(client_call, *, step: LaunchStepEnum, resource: str, **kwargs) -> str:
    logger.info("Creating Meta %s", resource)
    try:
        response = client_call(**kwargs)
    except MetaAdsError as exc:
        logger.error(
            "Meta %s creation failed",
            resource,
            extra={"status_code": exc.status_code, "meta": exc.error_payload},
        )
        raise _StepFailed(step, exc.platform_message) from exc
    object_id = _require_id(response, step=step, resource=resource)
    logger.info("Meta %s created", resource, extra={"object_id": object_id})
    return object_id


def _step_failure(step: LaunchStepEnum, message: str, created: list[tuple[str, str]]) -> LaunchResult:
    result = LaunchResult(success=False, error=message, step=step.value)
    if step == LaunchStepEnum.adset and created:
        result.created_campaign_id = created[0][1]
    return result


def create_remote_campaign(
    payload: AgentPayload,
    *,
    campaigns: CampaignStore,
    client: Optional[MetaAdsClient] = None,
) -> LaunchResult:
    """
    Create campaign -> ad set -> creative -> ad on Meta, all paused, then mirror the ids locally.

    A failing step deletes whatever this attempt already created, newest first. Cleanup errors
    are logged and never replace the original failure. A failed local write after all four
    objects exist is logged and still reported as success.
    """
    logger.info(
        "Starting Meta campaign launch",
        extra={
            "user_id": payload.user_id,
            "campaign_id": payload.campaign_id,
            "asset_type": payload.asset_type,
            "agent_mode": payload.agent_mode.value,
            "assets_count": len(payload.assets),
            "has_brief": bool(payload.brief),
        },
    )

    try:
        _check_connection(payload)
        if client is None:
            client = MetaAdsClient(access_token=payload.meta_connection.access_token or "")
        plan = _preflight(payload, client)
    except _StepFailed as failure:
        logger.warning("Launch preflight failed", extra={"error": failure.message})
        return LaunchResult(success=False, error=failure.message, step=failure.step.value)

    created = plan.created
    step = LaunchStepEnum.campaign
    try:
        meta_campaign_id = _create(
            client.create_campaign,
            step=LaunchStepEnum.campaign,
            resource="campaign",
            ad_account_id=plan.ad_account_id,
            payload=_campaign_params(payload),
        )
        created.append(("campaign", meta_campaign_id))

        step = LaunchStepEnum.adset
        meta_adset_id = _create(
            client.create_adset,
            step=LaunchStepEnum.adset,
            resource="adset",
            ad_account_id=plan.ad_account_id,
            payload=_adset_params(payload, plan, meta_campaign_id=meta_campaign_id),
        )
        created.append(("adset", meta_adset_id))

        step = LaunchStepEnum.creative
        creative_params = build_creative_params(
            plan.creative,
            campaign_name=payload.campaign_name,
            uploader=client,
            ad_account_id=plan.ad_account_id,
        )
        meta_creative_id = _create(
            client.create_adcreative,
            step=LaunchStepEnum.creative,
            resource="creative",
            ad_account_id=plan.ad_account_id,
            payload=creative_params,
        )
        created.append(("creative", meta_creative_id))

        step = LaunchStepEnum.ad
        meta_ad_id = _create(
            client.create_ad,
            step=LaunchStepEnum.ad,
            resource="ad",
            ad_account_id=plan.ad_account_id,
            payload=_ad_params(payload, meta_adset_id=meta_adset_id, meta_creative_id=meta_creative_id),
        )
        created.append(("ad", meta_ad_id))
    except _StepFailed as failure:
        _rollback(client, created)
        return _step_failure(failure.step, failure.message, created)
    except Exception as exc:
        logger.exception("Unexpected error during Meta %s step", step.value)
        _rollback(client, created)
        return _step_failure(step, str(exc) or f"Unexpected error during {step.value} step", created)

    ids = {
        "meta_campaign_id": meta_campaign_id,
        "meta_adset_id": meta_adset_id,
        "meta_creative_id": meta_creative_id,
        "meta_ad_id": meta_ad_id,
    }
    try:
        updated = campaigns.set_meta_ids(user_id=payload.user_id, campaign_id=payload.campaign_id, **ids)
        if not updated:
            logger.warning(
                "Local campaign row not found; Meta campaign still created",
                extra={"campaign_id": payload.campaign_id, **ids},
            )
    except Exception as exc:
        logger.warning(
            "Failed to update local campaign (campaign still created on Meta)",
            extra={"campaign_id": payload.campaign_id, "error": str(exc), **ids},
        )

    logger.info("Meta campaign launch complete", extra={"campaign_id": payload.campaign_id, **ids})
    return LaunchResult(success=True, message=SUCCESS_MESSAGE, data=ids)
