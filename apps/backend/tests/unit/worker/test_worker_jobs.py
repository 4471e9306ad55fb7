"""
Name: Worker Jobs Unit Tests

Responsibilities:
  - Validate run_job status handling (completed / invalid / failed)
  - Validate payload parsing for email and savings report jobs
  - Validate dispatcher drain and rate limiter usage per job
  - Validate that a job without rate-limit slot is raised for retry
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from corbez.domain.services import JobType
from corbez.worker import jobs

pytestmark = pytest.mark.unit


@pytest.fixture
def worker_env():
    dispatcher = MagicMock()
    limiter = MagicMock()
    with patch.object(jobs, "get_current_job", return_value=None), patch.object(
        jobs, "get_event_dispatcher", return_value=dispatcher
    ), patch.object(jobs, "get_job_rate_limiter", return_value=limiter):
        yield SimpleNamespace(dispatcher=dispatcher, limiter=limiter)


class TestRunJob:
    def test_completed_job_drains_events(self, worker_env):
        result = jobs.run_job(JobType.SEND_EMAIL, {"x": 1}, lambda payload: {"ok": True})

        assert result == {"ok": True}
        worker_env.dispatcher.drain.assert_called_once()
        worker_env.limiter.acquire.assert_called_once_with("jobs")

    def test_invalid_payload_is_not_raised(self, worker_env):
        def _handler(payload):
            raise jobs.InvalidJobPayload("bad")

        assert jobs.run_job(JobType.SEND_EMAIL, {}, _handler) is None
        worker_env.dispatcher.drain.assert_called_once()

    def test_failure_is_reraised_for_retry(self, worker_env):
        def _handler(payload):
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError):
            jobs.run_job(JobType.CLEANUP_EXPIRED_COUPONS, {}, _handler)
        worker_env.dispatcher.drain.assert_called_once()

    def test_runs_without_limiter(self, worker_env):
        with patch.object(jobs, "get_job_rate_limiter", return_value=None):
            assert jobs.run_job(JobType.SEND_EMAIL, {}, lambda p: None) is None

    def test_no_rate_limit_slot_is_raised_for_retry(self, worker_env):
        worker_env.limiter.acquire.return_value = False
        handler = MagicMock()

        with patch.object(jobs, "clear_context") as clear_context:
            with pytest.raises(jobs.JobRateLimited):
                jobs.run_job(JobType.SEND_EMAIL, {}, handler)

        handler.assert_not_called()
        worker_env.dispatcher.drain.assert_called_once()
        clear_context.assert_called_once()

    def test_limiter_error_still_clears_context(self, worker_env):
        worker_env.limiter.acquire.side_effect = ConnectionError("redis down")

        with patch.object(jobs, "clear_context") as clear_context:
            with pytest.raises(ConnectionError):
                jobs.run_job(JobType.SEND_EMAIL, {}, lambda p: None)

        clear_context.assert_called_once()


class TestSendEmailJob:
    def test_valid_email(self, worker_env):
        result = jobs.send_email_job(
            {"to": "ana@acme.test", "subject": "Hi", "template": "coupon-claimed"}
        )
        assert result == {"template": "coupon-claimed"}

    def test_missing_fields(self, worker_env):
        assert jobs.send_email_job({"to": "ana@acme.test"}) is None


class TestMaintenanceJobs:
    def test_cleanup_expired_coupons(self, worker_env):
        use_case = MagicMock()
        use_case.execute.return_value = SimpleNamespace(expired=3)
        with patch.object(jobs, "get_expire_coupons_use_case", return_value=use_case):
            assert jobs.cleanup_expired_coupons_job({}) == {"expired": 3}

    def test_process_expired_suspensions(self, worker_env):
        use_case = MagicMock()
        use_case.execute.return_value = SimpleNamespace(
            employees=2, merchants=1, companies=0, total=3
        )
        with patch.object(
            jobs, "get_process_expired_suspensions_use_case", return_value=use_case
        ):
            result = jobs.process_expired_suspensions_job({})
        assert result == {"employees": 2, "merchants": 1, "companies": 0}


class TestSavingsReportJob:
    def test_month_is_parsed(self, worker_env):
        company_id = uuid4()
        use_case = MagicMock()
        use_case.execute.return_value.to_dict.return_value = {"period": "2026-03"}
        with patch.object(jobs, "get_savings_report_use_case", return_value=use_case):
            result = jobs.generate_savings_report_job(
                {"company_id": str(company_id), "month": "2026-03"}
            )

        assert result == {"period": "2026-03"}
        use_case.execute.assert_called_once_with(company_id, 2026 * 12 + 2)

    @pytest.mark.parametrize(
        "payload",
        [
            {"company_id": "not-a-uuid", "month": "2026-03"},
            {"company_id": None},
            {"company_id": str(uuid4()), "month": "2026-13"},
            {"company_id": str(uuid4()), "month": "March"},
        ],
    )
    def test_invalid_payloads(self, worker_env, payload):
        use_case = MagicMock()
        with patch.object(jobs, "get_savings_report_use_case", return_value=use_case):
            assert jobs.generate_savings_report_job(payload) is None
        use_case.execute.assert_not_called()
