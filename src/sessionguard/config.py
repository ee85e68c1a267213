from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings


class RiskThresholds(BaseModel):
    """Risk score boundaries, each the lowest score of its band."""

    low: int = Field(25, ge=0)
    medium: int = Field(50, ge=0)
    high: int = Field(75, ge=0)
    critical: int = Field(90, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_order(self) -> "RiskThresholds":
        if not self.low <= self.medium <= self.high <= self.critical:
            raise ValueError("risk score thresholds must be non-decreasing: low <= medium <= high <= critical")
        return self


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    api_token: str  # Bearer token required by every /api/v1 endpoint
    cors_origins: list[str] = []

    # Detection tuning, snapshotted into an immutable DetectionConfig at startup
    strict_user_agent_matching: bool = False
    allow_ip_change: bool = False  # Tolerate address changes (mobile roaming) at a lower risk
    impossible_travel_threshold_minutes: float = 60
    risk_score_thresholds: RiskThresholds = RiskThresholds()
    rapid_switch_window_minutes: float = 5
    rapid_switch_max_sessions: int = 3
    store_timeout_seconds: float = 2.0  # Upper bound for each store read on the detection path
    second_factor_window_minutes: float = 5

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SESSIONGUARD_",
        "extra": "ignore",
    }
