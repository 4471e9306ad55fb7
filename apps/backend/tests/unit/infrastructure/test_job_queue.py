"""
Name: Job Queue Unit Tests

Responsibilities:
  - Validate cron parsing and matching
  - Validate RQ adapter enqueue kwargs, retries and fail-fast config
  - Validate recurring registry slots and the scheduler tick
  - Validate the fixed-window rate limiter
  - Validate the in-memory queue used in tests/dev

Notes:
  - Redis is replaced by a small dict-backed double; RQ Queue by MagicMock
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from corbez.crosscutting.exceptions import (
    QueueConfigurationError,
    QueueEnqueueError,
)
from corbez.domain.services import JobOptions, JobType
from corbez.infrastructure.queue import (
    CronParseError,
    FixedWindowRateLimiter,
    InMemoryJobQueue,
    RecurringRegistry,
    RecurringSchedule,
    RQJobQueue,
    RQQueueConfig,
    backoff_intervals,
    parse_cron,
)
from corbez.infrastructure.queue.import_utils import broken_paths
from corbez.infrastructure.queue.job_paths import JOB_FUNCTION_PATHS
from corbez.worker.scheduler import RecurringScheduler, register_defaults

pytestmark = pytest.mark.unit


class _FakeRedis:
    """R: Subconjunto de comandos Redis usados por la capa de colas."""

    def __init__(self) -> None:
        self.hashes: dict = {}
        self.values: dict = {}

    def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value
        return 1

    def hdel(self, key, field):
        return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def incr(self, key):
        self.values[key] = int(self.values.get(key, 0)) + 1
        return self.values[key]

    def pipeline(self):
        return _FakePipeline(self)


class _FakePipeline:
    def __init__(self, redis: _FakeRedis) -> None:
        self._redis = redis
        self._ops = []

    def incr(self, key):
        self._ops.append(lambda: self._redis.incr(key))

    def pexpire(self, key, ms):
        self._ops.append(lambda: True)

    def execute(self):
        return [op() for op in self._ops]


# ============================================================================
# Cron
# ============================================================================


class TestCron:
    def test_every_fifteen_minutes(self):
        cron = parse_cron("*/15 * * * *")
        assert cron.minutes == frozenset({0, 15, 30, 45})
        assert cron.matches(datetime(2026, 3, 10, 8, 45))
        assert not cron.matches(datetime(2026, 3, 10, 8, 46))

    def test_lists_and_ranges(self):
        cron = parse_cron("0 9-11,14 * * 1-5")
        # 2026-03-10 es martes.
        assert cron.matches(datetime(2026, 3, 10, 10, 0))
        assert cron.matches(datetime(2026, 3, 10, 14, 0))
        assert not cron.matches(datetime(2026, 3, 10, 12, 0))
        # 2026-03-08 es domingo.
        assert not cron.matches(datetime(2026, 3, 8, 10, 0))

    def test_sunday_as_seven(self):
        cron = parse_cron("0 0 * * 7")
        assert cron.weekdays == frozenset({0})
        assert cron.matches(datetime(2026, 3, 8, 0, 0))

    def test_day_or_weekday_when_both_restricted(self):
        cron = parse_cron("0 0 1 * 1")
        assert cron.matches(datetime(2026, 3, 1, 0, 0))  # day 1 (Sunday)
        assert cron.matches(datetime(2026, 3, 9, 0, 0))  # Monday
        assert not cron.matches(datetime(2026, 3, 10, 0, 0))

    @pytest.mark.parametrize(
        "expression",
        ["* * * *", "60 * * * *", "*/0 * * * *", "a * * * *", "5-1 * * * *", ""],
    )
    def test_invalid_expressions(self, expression):
        with pytest.raises(CronParseError):
            parse_cron(expression)


# ============================================================================
# RQ adapter
# ============================================================================


def test_backoff_doubles_per_retry():
    assert backoff_intervals(3, 1000) == [1, 2]
    assert backoff_intervals(4, 2000) == [2, 4, 8]
    assert backoff_intervals(1, 1000) == []
    assert backoff_intervals(0, 1000) == []


def test_all_job_paths_are_importable():
    assert broken_paths(JOB_FUNCTION_PATHS.values()) == []


def _rq_queue(mock_queue: MagicMock, redis=None, **config) -> RQJobQueue:
    redis = redis or _FakeRedis()
    return RQJobQueue(
        redis=redis,
        config=RQQueueConfig(**config),
        queue=mock_queue,
        recurring=RecurringRegistry(redis),
    )


class TestRQJobQueue:
    def test_enqueue_uses_job_path_and_retry(self):
        mock_queue = MagicMock()
        mock_queue.enqueue.return_value = MagicMock(id="job-1")
        queue = _rq_queue(mock_queue, attempts=3, backoff_ms=1000)

        job_id = queue.enqueue(JobType.SEND_EMAIL, {"to": "a@b.test"})

        assert job_id == "job-1"
        args, kwargs = mock_queue.enqueue.call_args
        assert args[0] == "corbez.jobs.send_email_job"
        assert kwargs["args"] == ({"to": "a@b.test"},)
        assert kwargs["retry"].max == 2
        assert kwargs["retry"].intervals == [1, 2]
        assert kwargs["description"] == "send-email"
        assert "job_id" not in kwargs

    def test_single_attempt_has_no_retry(self):
        mock_queue = MagicMock()
        queue = _rq_queue(mock_queue)

        queue.enqueue(JobType.SEND_EMAIL, {}, JobOptions(attempts=1, job_id="fixed"))

        kwargs = mock_queue.enqueue.call_args.kwargs
        assert kwargs["retry"] is None
        assert kwargs["job_id"] == "fixed"

    def test_delayed_enqueue(self):
        mock_queue = MagicMock()
        queue = _rq_queue(mock_queue)

        queue.enqueue(
            JobType.GENERATE_SAVINGS_REPORT, {}, JobOptions(delay_seconds=30)
        )

        assert mock_queue.enqueue.call_count == 0
        delay = mock_queue.enqueue_in.call_args.args[0]
        assert delay == timedelta(seconds=30)

    def test_enqueue_failure_is_wrapped(self):
        mock_queue = MagicMock()
        mock_queue.enqueue.side_effect = ConnectionError("redis down")
        queue = _rq_queue(mock_queue)

        with pytest.raises(QueueEnqueueError):
            queue.enqueue(JobType.SEND_EMAIL, {})

    def test_negative_attempts_fail_fast(self):
        with pytest.raises(QueueConfigurationError):
            _rq_queue(MagicMock(), attempts=-1)

    def test_broken_job_path_fails_fast(self):
        with patch(
            "corbez.infrastructure.queue.rq_queue.broken_paths",
            return_value=["corbez.jobs.missing"],
        ):
            with pytest.raises(QueueConfigurationError, match="corbez.jobs.missing"):
                _rq_queue(MagicMock())

    def test_schedule_recurring_and_stats(self):
        mock_queue = MagicMock()
        mock_queue.count = 4
        mock_queue.started_job_registry.count = 1
        mock_queue.finished_job_registry.count = 10
        mock_queue.failed_job_registry.count = 2
        mock_queue.scheduled_job_registry.count = 3
        queue = _rq_queue(mock_queue)

        ids = register_defaults(queue)
        stats = queue.get_stats()

        assert ids == [
            "cleanup-expired-coupons:0 * * * *",
            "process-expired-suspensions:*/15 * * * *",
        ]
        assert stats.waiting == 4
        assert stats.active == 1
        assert stats.completed == 10
        assert stats.failed == 2
        assert stats.delayed == 3
        assert stats.scheduled == 2
        assert stats.recurring == sorted(ids)

    def test_invalid_cron_is_rejected(self):
        queue = _rq_queue(MagicMock())
        with pytest.raises(QueueConfigurationError):
            queue.schedule_recurring(JobType.CLEANUP_EXPIRED_COUPONS, {}, "bad cron")


# ============================================================================
# Recurring registry / scheduler
# ============================================================================


class TestRecurring:
    def test_corrupt_entries_are_skipped(self):
        redis = _FakeRedis()
        registry = RecurringRegistry(redis)
        registry.add(RecurringSchedule(JobType.CLEANUP_EXPIRED_COUPONS, "0 * * * *"))
        redis.hset("corbez:recurring", "broken", "{not json")

        entries = registry.entries()
        assert [e.job_type for e in entries] == [JobType.CLEANUP_EXPIRED_COUPONS]

    def test_slot_is_claimed_once(self):
        registry = RecurringRegistry(_FakeRedis())
        moment = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

        assert registry.claim_slot("cleanup", moment) is True
        assert registry.claim_slot("cleanup", moment) is False
        assert registry.claim_slot("cleanup", moment + timedelta(minutes=1)) is True

    def test_scheduler_enqueues_due_jobs_once_per_minute(self):
        redis = _FakeRedis()
        registry = RecurringRegistry(redis)
        registry.add(RecurringSchedule(JobType.CLEANUP_EXPIRED_COUPONS, "0 * * * *"))
        registry.add(RecurringSchedule(JobType.PROCESS_EXPIRED_SUSPENSIONS, "*/15 * * * *"))
        queue = InMemoryJobQueue()
        scheduler = RecurringScheduler(registry, queue)
        top_of_hour = datetime(2026, 3, 10, 12, 0, 25, tzinfo=timezone.utc)

        first = scheduler.tick(top_of_hour)
        second = scheduler.tick(top_of_hour + timedelta(seconds=20))
        quarter = scheduler.tick(datetime(2026, 3, 10, 12, 15, tzinfo=timezone.utc))
        idle = scheduler.tick(datetime(2026, 3, 10, 12, 16, tzinfo=timezone.utc))

        assert sorted(first) == [
            "cleanup-expired-coupons-202603101200",
            "process-expired-suspensions-202603101200",
        ]
        assert second == []
        assert quarter == ["process-expired-suspensions-202603101215"]
        assert idle == []
        assert len(queue.jobs()) == 3


# ============================================================================
# Rate limiter
# ============================================================================


class TestRateLimiter:
    def test_allows_up_to_max_per_window(self):
        now = [1_000]
        limiter = FixedWindowRateLimiter(
            _FakeRedis(), max_requests=2, window_ms=1000, now_ms=lambda: now[0]
        )

        assert [limiter.try_acquire("email") for _ in range(3)] == [True, True, False]
        now[0] = 2_000
        assert limiter.try_acquire("email") is True

    def test_acquire_sleeps_until_next_window(self):
        now = [1_250]
        sleeps = []

        def _sleep(seconds):
            sleeps.append(seconds)
            now[0] += int(seconds * 1000)

        limiter = FixedWindowRateLimiter(
            _FakeRedis(),
            max_requests=1,
            window_ms=1000,
            now_ms=lambda: now[0],
            sleep=_sleep,
        )

        assert limiter.acquire("email") is True
        assert limiter.acquire("email") is True
        assert sleeps == [0.75]

    def test_acquire_gives_up_after_max_wait(self):
        limiter = FixedWindowRateLimiter(
            _FakeRedis(),
            max_requests=1,
            window_ms=1000,
            now_ms=lambda: 1_000,
            sleep=lambda _: None,
        )
        limiter.acquire("email")
        assert limiter.acquire("email", max_wait_ms=2_000) is False

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(_FakeRedis(), max_requests=0, window_ms=1000)


# ============================================================================
# In-memory queue
# ============================================================================


class TestInMemoryJobQueue:
    def test_dedupes_by_job_id(self):
        queue = InMemoryJobQueue()
        queue.enqueue(JobType.SEND_EMAIL, {"to": "a"}, JobOptions(job_id="x"))
        queue.enqueue(JobType.SEND_EMAIL, {"to": "b"}, JobOptions(job_id="x"))

        jobs = queue.jobs(JobType.SEND_EMAIL)
        assert len(jobs) == 1
        assert jobs[0].payload == {"to": "b"}

    def test_stats_split_delayed_jobs(self):
        queue = InMemoryJobQueue()
        queue.enqueue(JobType.SEND_EMAIL, {})
        queue.enqueue(JobType.SEND_EMAIL, {}, JobOptions(delay_seconds=60))
        register_defaults(queue)

        stats = queue.get_stats()
        assert stats.waiting == 1
        assert stats.delayed == 1
        assert stats.scheduled == 2

    def test_invalid_cron(self):
        with pytest.raises(QueueConfigurationError):
            InMemoryJobQueue().schedule_recurring(JobType.SEND_EMAIL, {}, "* *")
