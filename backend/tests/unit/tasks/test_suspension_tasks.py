"""Unit tests for suspension tasks (periodic expiry sweep).

Tests:
- expire_suspensions: delegates to SuspensionService.expire_due and reports the count
- beat schedule registration
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from trust_engine.core.celery_app import celery_app
from trust_engine.tasks.suspension_tasks import expire_suspensions

# =============================================================================
# expire_suspensions() Tests
# =============================================================================


class TestExpireSuspensions:
    """Tests for the 15-minute suspension expiry sweep."""

    @pytest.mark.unit
    def test_returns_expired_count(self) -> None:
        with patch("trust_engine.tasks.suspension_tasks.SuspensionService") as mock_service_cls:
            mock_service_cls.return_value.expire_due.return_value = 3

            result = expire_suspensions()

        assert result == {"expired_count": 3}

    @pytest.mark.unit
    def test_sweeps_with_current_utc_time(self) -> None:
        before = datetime.now(timezone.utc)
        with patch("trust_engine.tasks.suspension_tasks.SuspensionService") as mock_service_cls:
            mock_service_cls.return_value.expire_due.return_value = 0

            result = expire_suspensions()

        now = mock_service_cls.return_value.expire_due.call_args[0][0]
        assert now.tzinfo is not None
        assert now >= before
        assert result == {"expired_count": 0}

    @pytest.mark.unit
    def test_failure_is_retried(self) -> None:
        """Called outside a worker, retry re-raises the original error."""
        with patch("trust_engine.tasks.suspension_tasks.SuspensionService") as mock_service_cls:
            mock_service_cls.return_value.expire_due.side_effect = RuntimeError("db down")

            with pytest.raises(RuntimeError, match="db down"):
                expire_suspensions()


class TestBeatSchedule:
    @pytest.mark.unit
    def test_sweep_scheduled(self) -> None:
        entry = celery_app.conf.beat_schedule["expire-suspensions"]

        assert entry["task"] == "trust_engine.tasks.suspension_tasks.expire_suspensions"
