from enum import Enum


class AssetTypeEnum(str, Enum):
    catalog = "catalog"
    upload = "upload"


class CampaignStatusEnum(str, Enum):
    draft = "draft"
    paused = "paused"
    active = "active"
    archived = "archived"


class LaunchStateEnum(str, Enum):
    idle = "idle"
    launching = "launching"


class AgentModeEnum(str, Enum):
    TEST_MODE = "TEST_MODE"
    OPTIMIZE_MODE = "OPTIMIZE_MODE"
    SCALE_MODE = "SCALE_MODE"
    HOLD_MODE = "HOLD_MODE"


class LaunchStepEnum(str, Enum):
    preflight = "preflight"
    campaign = "campaign"
    adset = "adset"
    creative = "creative"
    ad = "ad"
