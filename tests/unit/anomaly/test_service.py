"""Tests for the anomaly service facade."""

import pytest

from sessionguard.core.modules.anomaly.models import AnomalyType
from sessionguard.core.modules.anomaly.service import AnomalyService
from sessionguard.core.modules.session.models import RequestContext


@pytest.fixture
def service(detector):
    """Service with its detector wired directly, skipping the database start."""
    instance = AnomalyService(None)
    instance._detector = detector
    return instance


class TestAnomalyService:
    """Tests for delegation to the detection engine."""

    async def test_timeout_forwarded_to_detector(self, service, make_session, session_store):
        """Test that a caller-supplied read bound reaches the detector."""
        session = make_session()
        session_store.read_delay = 0.5

        assessment = await service.check_session_anomaly(session.id, RequestContext(ip_address="192.168.1.1"), timeout=0.01)

        assert assessment.anomaly_types == [AnomalyType.CHECK_ERROR]

    def test_not_started(self):
        """Test that using the engine before start raises RuntimeError."""
        with pytest.raises(RuntimeError, match="not started"):
            AnomalyService(None).enforcer
