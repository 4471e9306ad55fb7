"""
Name: Verification Endpoints Unit Tests

Responsibilities:
  - Validate HTTP status mapping of coupon / pass verification outcomes
  - Validate RFC7807 problem bodies carry a stable error code
  - Validate health check in the in-memory configuration

Notes:
  - APP_ENV=test => container wires in-memory repositories and cache
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from corbez.api.main import app
from corbez.container import (
    get_claim_coupon_use_case,
    get_coupon_repository,
    get_discount_repository,
    get_employee_repository,
    get_issue_pass_use_case,
    get_merchant_repository,
    get_revoke_pass_use_case,
    reset_container,
)
from corbez.domain.entities import (
    Discount,
    DiscountType,
    Employee,
    EmployeeStatus,
    Merchant,
    MerchantStatus,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def client():
    reset_container()
    with TestClient(app) as test_client:
        yield test_client
    reset_container()


def _seed_employee(status=EmployeeStatus.ACTIVE) -> Employee:
    employee = Employee(
        id=uuid4(), company_id=uuid4(), email="ana@acme.test", status=status
    )
    get_employee_repository().add(employee)
    return employee


def _claim():
    employee = _seed_employee()
    merchant = Merchant(
        id=uuid4(), business_name="Taqueria Sol", status=MerchantStatus.ACTIVE
    )
    get_merchant_repository().add(merchant)
    discount = Discount(
        id=uuid4(), merchant_id=merchant.id, type=DiscountType.BASE, percentage=10
    )
    assert get_discount_repository().add(discount)
    result = get_claim_coupon_use_case().execute(employee.id, merchant.id, discount.id)
    assert result.error is None
    return employee, result.coupon


def _tamper(signature: str) -> str:
    return signature[:-1] + ("0" if signature[-1] != "0" else "1")


class TestVerifyCouponEndpoint:
    def test_valid_coupon(self, client):
        _, coupon = _claim()

        response = client.get(
            f"/verify/coupon/{coupon.unique_code}", params={"s": coupon.signature}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["coupon"]["code"] == coupon.unique_code
        assert body["merchant"]["business_name"] == "Taqueria Sol"
        assert body["usage"]["used_this_month"] == 0

    def test_missing_signature(self, client):
        _, coupon = _claim()

        response = client.get(f"/verify/coupon/{coupon.unique_code}")

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["code"] == "INVALID_DATA"

    def test_tampered_signature(self, client):
        _, coupon = _claim()

        response = client.get(
            f"/verify/coupon/{coupon.unique_code}",
            params={"s": _tamper(coupon.signature)},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SIGNATURE"

    def test_unknown_coupon(self, client):
        response = client.get("/verify/coupon/ZZZZ9999", params={"s": "0" * 16})

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_cancelled_coupon_is_gone(self, client):
        employee, coupon = _claim()
        get_coupon_repository().cancel_active_for_employee(
            employee.id, coupon.claimed_at
        )

        response = client.get(
            f"/verify/coupon/{coupon.unique_code}", params={"s": coupon.signature}
        )

        assert response.status_code == 410
        assert response.json()["code"] == "CANCELLED"

    def test_suspended_employee_is_forbidden(self, client):
        employee, coupon = _claim()
        repo = get_employee_repository()
        stored = repo.get(employee.id)
        stored.status = EmployeeStatus.BANNED
        assert repo.save(stored, expected_version=stored.version)

        response = client.get(
            f"/verify/coupon/{coupon.unique_code}", params={"s": coupon.signature}
        )

        assert response.status_code == 403
        assert response.json()["code"] == "EMPLOYEE_INACTIVE"
        assert response.json()["detail"] == "Account permanently banned"


class TestVerifyPassEndpoint:
    def test_valid_pass(self, client):
        employee = _seed_employee()
        issued = get_issue_pass_use_case().execute(employee.id).employee_pass

        response = client.get(
            f"/verify/employee/{issued.pass_id}", params={"s": issued.signature}
        )

        assert response.status_code == 200
        assert response.json()["pass_id"] == issued.pass_id
        assert response.json()["employee"]["id"] == str(employee.id)

    def test_revoked_pass_is_gone(self, client):
        employee = _seed_employee()
        issued = get_issue_pass_use_case().execute(employee.id).employee_pass
        get_revoke_pass_use_case().execute(employee.id)

        response = client.get(
            f"/verify/employee/{issued.pass_id}", params={"s": issued.signature}
        )

        assert response.status_code == 410
        assert response.json()["code"] == "REVOKED"

    def test_unknown_pass(self, client):
        response = client.get("/verify/employee/PASS-NOPE", params={"s": "0" * 16})
        assert response.status_code == 404


class TestHealth:
    def test_healthz_in_memory(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["db"] == "in-memory"
        assert body["redis"] == "disabled"

    def test_request_id_header_is_echoed(self, client):
        response = client.get("/healthz", headers={"X-Request-Id": "req-abc"})
        assert response.headers.get("X-Request-Id") == "req-abc"
