"""Signal checks comparing a session snapshot with the current request.

Each check is a pure function returning a SignalResult. The only store-backed
input (the recent active session count) is fetched by the detector and passed in.
"""

import ipaddress
import re
from datetime import datetime

from sessionguard.core.modules.anomaly.models import NO_SIGNAL, DetectionConfig, SignalResult
from sessionguard.core.modules.session.models import Session

IP_DRIFT_RISK = 40
TOLERATED_IP_DRIFT_RISK = 15
USER_AGENT_DRIFT_RISK = 35
IMPOSSIBLE_TRAVEL_RISK = 25
RAPID_SESSION_SWITCHING_RISK = 20

# Longest dotted runs first so "120.0.0.0" becomes one placeholder group
_VERSION_PATTERNS = (
    (re.compile(r"\d+\.\d+\.\d+"), "X.X.X"),
    (re.compile(r"\d+\.\d+"), "X.X"),
    (re.compile(r"\d+"), "X"),
)


def normalize_ip(value: str | None) -> str | None:
    """Canonical form of an address; IPv4-mapped IPv6 collapses to plain IPv4."""
    if value is None:
        return None
    value = value.strip()
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return value
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return str(address.ipv4_mapped)
    return str(address)


def normalize_user_agent(value: str | None) -> str:
    """Replace version numbers with placeholders so routine browser updates compare equal."""
    if not value:
        return ""
    for pattern, placeholder in _VERSION_PATTERNS:
        value = pattern.sub(placeholder, value)
    return value


def check_ip_drift(session: Session, current_ip: str | None, config: DetectionConfig) -> SignalResult:
    if normalize_ip(session.ip_address) == normalize_ip(current_ip):
        return NO_SIGNAL
    if config.allow_ip_change:
        return SignalResult(triggered=True, risk_increase=TOLERATED_IP_DRIFT_RISK)
    return SignalResult(triggered=True, risk_increase=IP_DRIFT_RISK)


def check_user_agent_drift(session: Session, current_user_agent: str | None, config: DetectionConfig) -> SignalResult:
    if session.user_agent == current_user_agent:
        return NO_SIGNAL
    if not config.strict_user_agent_matching:
        if normalize_user_agent(session.user_agent) == normalize_user_agent(current_user_agent):
            return NO_SIGNAL
    return SignalResult(triggered=True, risk_increase=USER_AGENT_DRIFT_RISK)


def check_impossible_travel(
    session: Session, ip_drift: SignalResult, current_time: datetime, config: DetectionConfig
) -> SignalResult:
    """Flag an address change that follows the last activity too closely.

    Only elapsed time is considered; no distance between the two addresses is
    computed, so any drift inside the threshold counts as impossible travel.
    """
    if not ip_drift.triggered or session.ip_address is None or session.last_access_at is None:
        return NO_SIGNAL
    elapsed_minutes = (current_time - session.last_access_at).total_seconds() / 60
    if elapsed_minutes < config.impossible_travel_threshold_minutes:
        return SignalResult(triggered=True, risk_increase=IMPOSSIBLE_TRAVEL_RISK)
    return NO_SIGNAL


def check_rapid_session_switching(recent_active_sessions: int, config: DetectionConfig) -> SignalResult:
    if recent_active_sessions > config.rapid_switch_max_sessions:
        return SignalResult(triggered=True, risk_increase=RAPID_SESSION_SWITCHING_RISK)
    return NO_SIGNAL
