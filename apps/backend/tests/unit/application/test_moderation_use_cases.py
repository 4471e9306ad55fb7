"""
Name: Moderation Use Cases Unit Tests

Responsibilities:
  - Verify suspension cascade (coupons cancelled, pass revoked, access blocked)
  - Verify warning threshold triggers automatic suspension
  - Verify expired suspensions are lifted by the sweep
  - Verify ban, company cascade, merchant moderation and appeals
  - Verify the append-only moderation log
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from corbez.application.usecases.coupons import CouponErrorCode
from corbez.application.usecases.moderation import (
    BanEmployeeUseCase,
    GetModerationHistoryUseCase,
    ListPendingAppealsUseCase,
    ModerationCommand,
    ModerationErrorCode,
    ProcessExpiredSuspensionsUseCase,
    ReactivateCompanyUseCase,
    ReactivateMerchantUseCase,
    ResolveAppealUseCase,
    SubmitAppealUseCase,
    SuspendCommand,
    SuspendCompanyUseCase,
    SuspendEmployeeUseCase,
    SuspendMerchantUseCase,
    UnsuspendEmployeeUseCase,
    WarnEmployeeUseCase,
)
from corbez.domain.entities import (
    SYSTEM_ACTOR,
    AppealStatus,
    CompanyStatus,
    CouponStatus,
    Duration,
    DurationUnit,
    EmployeeStatus,
    MerchantStatus,
    ModerationActionType,
    ModerationReason,
    ModerationTargetType,
    PassStatus,
)
from corbez.domain.events import EventType

pytestmark = pytest.mark.unit

ADMIN = "admin-1"


def _suspend(platform) -> SuspendEmployeeUseCase:
    return SuspendEmployeeUseCase(
        platform.employees,
        platform.coupons,
        platform.revoke_pass(),
        platform.recorder,
        platform.policy,
    )


def _warn(platform) -> WarnEmployeeUseCase:
    return WarnEmployeeUseCase(
        platform.employees, _suspend(platform), platform.recorder, platform.policy
    )


def _ban(platform) -> BanEmployeeUseCase:
    return BanEmployeeUseCase(
        platform.employees,
        platform.coupons,
        platform.revoke_pass(),
        platform.recorder,
        platform.policy,
    )


def _sweep(platform) -> ProcessExpiredSuspensionsUseCase:
    return ProcessExpiredSuspensionsUseCase(
        platform.employees, platform.merchants, platform.companies, platform.recorder
    )


def _employee_with_coupons(platform, count: int = 2):
    employee = platform.add_employee()
    coupons = []
    for i in range(count):
        merchant = platform.add_merchant(f"Merchant {i}")
        discount = platform.add_discount(merchant.id)
        result = platform.claim().execute(employee.id, merchant.id, discount.id)
        coupons.append((merchant, result.coupon))
    return employee, coupons


class TestSuspendEmployee:
    def test_suspension_cancels_coupons_and_blocks_access(self, platform):
        employee, coupons = _employee_with_coupons(platform, 2)
        platform.issue_pass().execute(employee.id)

        result = _suspend(platform).execute(
            employee.id,
            SuspendCommand(
                actor_id=ADMIN,
                reason=ModerationReason.FRAUD,
                notes="Shared coupons",
                duration=Duration(value=7, unit=DurationUnit.DAYS),
            ),
        )

        assert result.error is None
        assert result.cancelled_coupons == 2
        assert result.revoked_passes == 1
        for _, coupon in coupons:
            assert platform.coupons.get(coupon.id).status == CouponStatus.CANCELLED
        assert platform.passes.get_active_for_employee(employee.id) is None
        assert len(platform.events.of_type(EventType.COUPON_CANCELLED)) == 2

        merchant, coupon = coupons[0]
        redeem = platform.redeem().execute(coupon.unique_code, merchant.id)
        assert redeem.error.code == CouponErrorCode.NOT_ACTIVE

        new_merchant = platform.add_merchant("New")
        discount = platform.add_discount(new_merchant.id)
        claim = platform.claim().execute(employee.id, new_merchant.id, discount.id)
        assert claim.error.code == CouponErrorCode.ACCESS_DENIED
        assert claim.error.message == (
            "Account suspended until 2026-03-17. Reason: Shared coupons"
        )

    def test_action_is_logged_with_snapshots(self, platform):
        employee = platform.add_employee()

        result = _suspend(platform).execute(
            employee.id, SuspendCommand(actor_id=ADMIN, reason=ModerationReason.ABUSE)
        )

        action = result.action
        assert action.action == ModerationActionType.SUSPEND
        assert action.previous_state["status"] == "ACTIVE"
        assert action.new_state["status"] == "SUSPENDED"
        assert action.new_state["suspended_until"] is None
        assert action.is_appealable is True
        assert action.appeal_deadline == platform.clock() + timedelta(days=14)
        moderation_events = platform.events.of_type(EventType.MODERATION_ACTION)
        assert moderation_events[-1].payload["new_status"] == "SUSPENDED"

    def test_banned_employee_cannot_be_suspended(self, platform):
        employee = platform.add_employee(status=EmployeeStatus.BANNED)

        result = _suspend(platform).execute(
            employee.id, SuspendCommand(actor_id=ADMIN, reason=ModerationReason.ABUSE)
        )
        assert result.error.code == ModerationErrorCode.INVALID_TRANSITION

    def test_unknown_employee(self, platform):
        result = _suspend(platform).execute(
            uuid4(), SuspendCommand(actor_id=ADMIN, reason=ModerationReason.ABUSE)
        )
        assert result.error.code == ModerationErrorCode.NOT_FOUND

    def test_unsuspend_restores_access(self, platform):
        employee = platform.add_employee()
        _suspend(platform).execute(
            employee.id, SuspendCommand(actor_id=ADMIN, reason=ModerationReason.ABUSE)
        )

        result = UnsuspendEmployeeUseCase(
            platform.employees, platform.recorder, platform.policy
        ).execute(employee.id, actor_id=ADMIN)

        assert result.error is None
        stored = platform.employees.get(employee.id)
        assert stored.status == EmployeeStatus.ACTIVE
        assert stored.suspended_until is None

    def test_unsuspend_active_employee_is_invalid(self, platform):
        employee = platform.add_employee()
        result = UnsuspendEmployeeUseCase(
            platform.employees, platform.recorder, platform.policy
        ).execute(employee.id, actor_id=ADMIN)
        assert result.error.code == ModerationErrorCode.INVALID_TRANSITION


class TestWarnings:
    def test_third_warning_auto_suspends_for_seven_days(self, platform, clock):
        employee, _ = _employee_with_coupons(platform, 1)
        warn = _warn(platform)
        command = ModerationCommand(actor_id=ADMIN, reason=ModerationReason.SPAM)

        first = warn.execute(employee.id, command)
        second = warn.execute(employee.id, command)
        third = warn.execute(employee.id, command)

        assert first.auto_suspension is None
        assert second.auto_suspension is None
        assert third.auto_suspension is not None
        assert third.auto_suspension.actor_id == SYSTEM_ACTOR
        assert third.auto_suspension.reason == ModerationReason.AUTO_WARNINGS
        assert third.cancelled_coupons == 1

        stored = platform.employees.get(employee.id)
        assert stored.status == EmployeeStatus.SUSPENDED
        assert stored.warning_count == 3
        assert stored.suspended_until == clock() + timedelta(days=7)
        assert stored.suspended_reason == "Automatic suspension after 3 warnings"

    def test_sweep_lifts_expired_suspension(self, platform, clock):
        employee = platform.add_employee()
        warn = _warn(platform)
        command = ModerationCommand(actor_id=ADMIN, reason=ModerationReason.SPAM)
        for _ in range(3):
            warn.execute(employee.id, command)

        assert _sweep(platform).execute().employees == 0

        clock.advance(days=7, minutes=1)
        result = _sweep(platform).execute()

        assert result.employees == 1
        assert result.total == 1
        stored = platform.employees.get(employee.id)
        assert stored.status == EmployeeStatus.ACTIVE
        assert stored.suspended_until is None
        history = GetModerationHistoryUseCase(platform.actions).execute(
            ModerationTargetType.EMPLOYEE, employee.id
        )
        latest = history.actions[0]
        assert latest.action == ModerationActionType.UNSUSPEND
        assert latest.actor_id == SYSTEM_ACTOR
        assert latest.reason == ModerationReason.EXPIRED


class TestBan:
    def test_ban_cancels_every_coupon_and_is_permanent(self, platform, clock):
        employee, coupons = _employee_with_coupons(platform, 2)
        first_coupon = coupons[0][1]
        stored = platform.coupons.get(first_coupon.id)
        stored.status = CouponStatus.EXPIRED
        platform.coupons.save(stored, expected_version=stored.version)

        result = _ban(platform).execute(
            employee.id, ModerationCommand(actor_id=ADMIN, reason=ModerationReason.FRAUD)
        )

        assert result.cancelled_coupons == 2
        assert result.action.duration.is_permanent
        assert result.action.appeal_deadline == clock() + timedelta(days=30)
        assert platform.employees.get(employee.id).status == EmployeeStatus.BANNED

        clock.advance(days=365)
        assert _sweep(platform).execute().employees == 0

    def test_double_ban_is_invalid(self, platform):
        employee = platform.add_employee()
        command = ModerationCommand(actor_id=ADMIN, reason=ModerationReason.FRAUD)
        _ban(platform).execute(employee.id, command)

        again = _ban(platform).execute(employee.id, command)
        assert again.error.code == ModerationErrorCode.INVALID_TRANSITION


class TestOrganizations:
    def test_company_suspension_deactivates_active_employees_only(self, platform):
        company = platform.add_company()
        active = platform.add_employee(company.id)
        banned = platform.add_employee(company.id, status=EmployeeStatus.BANNED)

        result = SuspendCompanyUseCase(
            platform.companies, platform.employees, platform.recorder, platform.policy
        ).execute(
            company.id,
            SuspendCommand(actor_id=ADMIN, reason=ModerationReason.PAYMENT_ISSUE),
        )

        assert result.deactivated_employees == 1
        assert platform.companies.get(company.id).status == CompanyStatus.SUSPENDED
        assert platform.employees.get(active.id).status == EmployeeStatus.INACTIVE
        assert platform.employees.get(banned.id).status == EmployeeStatus.BANNED
        assert len(platform.events.of_type(EventType.COMPANY_UPDATED)) == 1

    def test_company_reactivation(self, platform):
        company = platform.add_company()
        SuspendCompanyUseCase(
            platform.companies, platform.employees, platform.recorder, platform.policy
        ).execute(
            company.id,
            SuspendCommand(actor_id=ADMIN, reason=ModerationReason.PAYMENT_ISSUE),
        )
        reactivate = ReactivateCompanyUseCase(platform.companies, platform.recorder)

        assert reactivate.execute(company.id, actor_id=ADMIN).error is None
        assert platform.companies.get(company.id).status == CompanyStatus.ACTIVE
        again = reactivate.execute(company.id, actor_id=ADMIN)
        assert again.error.code == ModerationErrorCode.INVALID_TRANSITION

    def test_merchant_suspension_expires(self, platform, clock):
        merchant = platform.add_merchant()
        SuspendMerchantUseCase(platform.merchants, platform.recorder, platform.policy).execute(
            merchant.id,
            SuspendCommand(
                actor_id=ADMIN,
                reason=ModerationReason.POLICY_VIOLATION,
                duration=Duration(value=2, unit=DurationUnit.HOURS),
            ),
        )
        assert platform.merchants.get(merchant.id).status == MerchantStatus.SUSPENDED

        clock.advance(hours=3)
        result = _sweep(platform).execute()

        assert result.merchants == 1
        assert platform.merchants.get(merchant.id).status == MerchantStatus.ACTIVE
        updates = platform.events.of_type(EventType.MERCHANT_UPDATED)
        assert [e.payload["status"] for e in updates] == ["SUSPENDED", "ACTIVE"]

    def test_merchant_reactivation_requires_suspension(self, platform):
        merchant = platform.add_merchant()
        result = ReactivateMerchantUseCase(platform.merchants, platform.recorder).execute(
            merchant.id, actor_id=ADMIN
        )
        assert result.error.code == ModerationErrorCode.INVALID_TRANSITION


class TestAppeals:
    def _suspension_action(self, platform):
        employee = platform.add_employee()
        return _suspend(platform).execute(
            employee.id, SuspendCommand(actor_id=ADMIN, reason=ModerationReason.ABUSE)
        ).action

    def test_submit_and_resolve_appeal(self, platform):
        action = self._suspension_action(platform)
        submit = SubmitAppealUseCase(platform.actions, clock=platform.clock)

        submitted = submit.execute(action.id)
        assert submitted.action.appeal_status == AppealStatus.PENDING
        pending = ListPendingAppealsUseCase(platform.actions).execute()
        assert [a.id for a in pending.actions] == [action.id]

        resolved = ResolveAppealUseCase(platform.actions).execute(action.id, approved=False)
        assert resolved.action.appeal_status == AppealStatus.REJECTED
        # R: El snapshot original no cambia.
        assert resolved.action.new_state == action.new_state

    def test_appeal_twice_is_rejected(self, platform):
        action = self._suspension_action(platform)
        submit = SubmitAppealUseCase(platform.actions, clock=platform.clock)
        submit.execute(action.id)

        again = submit.execute(action.id)
        assert again.error.code == ModerationErrorCode.APPEAL_NOT_ALLOWED

    def test_appeal_after_deadline_is_rejected(self, platform, clock):
        action = self._suspension_action(platform)
        clock.advance(days=15)

        result = SubmitAppealUseCase(platform.actions, clock=clock).execute(action.id)
        assert result.error.code == ModerationErrorCode.APPEAL_NOT_ALLOWED

    def test_warnings_are_not_appealable(self, platform):
        employee = platform.add_employee()
        warning = _warn(platform).execute(
            employee.id, ModerationCommand(actor_id=ADMIN, reason=ModerationReason.SPAM)
        ).action

        result = SubmitAppealUseCase(platform.actions, clock=platform.clock).execute(
            warning.id
        )
        assert result.error.code == ModerationErrorCode.APPEAL_NOT_ALLOWED

    def test_resolving_without_pending_appeal(self, platform):
        action = self._suspension_action(platform)
        result = ResolveAppealUseCase(platform.actions).execute(action.id, approved=True)
        assert result.error.code == ModerationErrorCode.INVALID_TRANSITION


def test_history_is_newest_first(platform, clock):
    employee = platform.add_employee()
    warn = _warn(platform)
    command = ModerationCommand(actor_id=ADMIN, reason=ModerationReason.SPAM)
    warn.execute(employee.id, command)
    clock.advance(minutes=5)
    _suspend(platform).execute(
        employee.id, SuspendCommand(actor_id=ADMIN, reason=ModerationReason.ABUSE)
    )

    history = GetModerationHistoryUseCase(platform.actions).execute(
        ModerationTargetType.EMPLOYEE, employee.id
    )
    assert [a.action for a in history.actions] == [
        ModerationActionType.SUSPEND,
        ModerationActionType.WARN,
    ]


def test_suspension_revokes_pass(platform):
    employee = platform.add_employee()
    issued = platform.issue_pass().execute(employee.id).employee_pass

    _suspend(platform).execute(
        employee.id, SuspendCommand(actor_id=ADMIN, reason=ModerationReason.ABUSE)
    )

    assert platform.passes.get_by_pass_id(issued.pass_id).status == PassStatus.REVOKED
