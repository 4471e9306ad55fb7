"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test, sin .env)
  - Provide in-memory repositories, cache and signer
  - Provide a controllable clock and an event recorder
  - Setup test data factories (companies, merchants, employees, discounts)

Collaborators:
  - pytest: Test framework
  - corbez.infrastructure.repositories.in_memory: storage sin DB
  - corbez.application.usecases: casos de uso bajo prueba

Notes:
  - Fixtures are auto-discovered by pytest
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List
from uuid import UUID, uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("APP_ENV", "test")

from corbez.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from corbez.application.access_policy import AccessPolicy  # noqa: E402
from corbez.application.usecases.coupons import (  # noqa: E402
    ClaimCouponUseCase,
    RedeemCouponUseCase,
    VerifyCouponUseCase,
)
from corbez.application.usecases.discounts import MerchantDiscountCache  # noqa: E402
from corbez.application.usecases.moderation import (  # noqa: E402
    ModerationPolicy,
    ModerationRecorder,
)
from corbez.application.usecases.passes import (  # noqa: E402
    IssueEmployeePassUseCase,
    RevokeEmployeePassUseCase,
    VerifyEmployeePassUseCase,
)
from corbez.domain.entities import (  # noqa: E402
    Company,
    Discount,
    DiscountType,
    Employee,
    EmployeeStatus,
    Merchant,
    MerchantStatus,
)
from corbez.domain.events import DomainEvent, EventType  # noqa: E402
from corbez.infrastructure.cache import (  # noqa: E402
    InMemoryCacheBackend,
    KeyValueCacheFacade,
)
from corbez.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryAuditEventRepository,
    InMemoryCompanyRepository,
    InMemoryCouponRepository,
    InMemoryDiscountRepository,
    InMemoryEmployeePassRepository,
    InMemoryEmployeeRepository,
    InMemoryMerchantRepository,
    InMemoryModerationActionRepository,
)
from corbez.infrastructure.security import HmacTokenSigner  # noqa: E402

BASE_URL = "https://corbez.test"


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# Clock / Events
# ============================================================================


class FakeClock:
    """R: Reloj controlable (UTC) para rollover mensual y expiraciones."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now

    def set(self, moment: datetime) -> datetime:
        self.now = moment
        return self.now


class RecordingEvents:
    """R: EventPublisher síncrono que guarda lo publicado."""

    def __init__(self) -> None:
        self.events: List[DomainEvent] = []

    def publish_nowait(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> List[DomainEvent]:
        return [e for e in self.events if e.type == event_type]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def events() -> RecordingEvents:
    return RecordingEvents()


# ============================================================================
# Platform (repos + services + factories)
# ============================================================================


@dataclass
class Platform:
    clock: FakeClock
    events: RecordingEvents
    employees: InMemoryEmployeeRepository = field(default_factory=InMemoryEmployeeRepository)
    merchants: InMemoryMerchantRepository = field(default_factory=InMemoryMerchantRepository)
    companies: InMemoryCompanyRepository = field(default_factory=InMemoryCompanyRepository)
    discounts: InMemoryDiscountRepository = field(default_factory=InMemoryDiscountRepository)
    coupons: InMemoryCouponRepository = field(default_factory=InMemoryCouponRepository)
    passes: InMemoryEmployeePassRepository = field(
        default_factory=InMemoryEmployeePassRepository
    )
    actions: InMemoryModerationActionRepository = field(
        default_factory=InMemoryModerationActionRepository
    )
    audit: InMemoryAuditEventRepository = field(default_factory=InMemoryAuditEventRepository)
    cache: KeyValueCacheFacade = field(
        default_factory=lambda: KeyValueCacheFacade(InMemoryCacheBackend())
    )
    signer: HmacTokenSigner = field(
        default_factory=lambda: HmacTokenSigner(["test-signing-secret"])
    )

    # ---------------------------------------------------------------- data
    def add_company(self, name: str = "Acme Corp") -> Company:
        company = Company(id=uuid4(), name=name)
        self.companies.add(company)
        return company

    def add_merchant(
        self,
        name: str = "Taqueria Sol",
        status: MerchantStatus = MerchantStatus.ACTIVE,
        avg_order_value: float | None = None,
    ) -> Merchant:
        merchant = Merchant(
            id=uuid4(),
            business_name=name,
            status=status,
            avg_order_value=avg_order_value,
        )
        self.merchants.add(merchant)
        return merchant

    def add_employee(
        self,
        company_id: UUID | None = None,
        *,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        referred_by: UUID | None = None,
        email: str = "ana@acme.test",
    ) -> Employee:
        employee = Employee(
            id=uuid4(),
            company_id=company_id or uuid4(),
            email=email,
            status=status,
            referred_by=referred_by,
            created_at=self.clock(),
        )
        self.employees.add(employee)
        return employee

    def add_discount(
        self,
        merchant_id: UUID,
        *,
        type: DiscountType = DiscountType.BASE,
        percentage: int = 10,
        **kwargs,
    ) -> Discount:
        discount = Discount(
            id=kwargs.pop("id", uuid4()),
            merchant_id=merchant_id,
            type=type,
            percentage=percentage,
            **kwargs,
        )
        assert self.discounts.add(discount)
        return discount

    # ------------------------------------------------------------- services
    @property
    def access(self) -> AccessPolicy:
        return AccessPolicy(self.employees, self.merchants)

    @property
    def discount_cache(self) -> MerchantDiscountCache:
        return MerchantDiscountCache(self.discounts, self.cache)

    @property
    def recorder(self) -> ModerationRecorder:
        return ModerationRecorder(self.actions, self.events, self.clock)

    @property
    def policy(self) -> ModerationPolicy:
        return ModerationPolicy()

    def claim(self) -> ClaimCouponUseCase:
        return ClaimCouponUseCase(
            self.coupons,
            self.discounts,
            self.merchants,
            self.access,
            self.signer,
            self.cache,
            self.events,
            public_base_url=BASE_URL,
            clock=self.clock,
        )

    def redeem(self) -> RedeemCouponUseCase:
        return RedeemCouponUseCase(
            self.coupons,
            self.discounts,
            self.employees,
            self.access,
            self.cache,
            self.events,
            clock=self.clock,
        )

    def verify_coupon(self) -> VerifyCouponUseCase:
        return VerifyCouponUseCase(
            self.coupons,
            self.employees,
            self.merchants,
            self.discounts,
            self.signer,
            self.cache,
            clock=self.clock,
        )

    def issue_pass(self) -> IssueEmployeePassUseCase:
        return IssueEmployeePassUseCase(
            self.employees,
            self.passes,
            self.access,
            self.signer,
            self.cache,
            self.events,
            public_base_url=BASE_URL,
            clock=self.clock,
        )

    def verify_pass(self) -> VerifyEmployeePassUseCase:
        return VerifyEmployeePassUseCase(
            self.passes, self.employees, self.signer, self.cache
        )

    def revoke_pass(self) -> RevokeEmployeePassUseCase:
        return RevokeEmployeePassUseCase(
            self.passes, self.cache, self.events, clock=self.clock
        )


@pytest.fixture
def platform(clock: FakeClock, events: RecordingEvents) -> Platform:
    return Platform(clock=clock, events=events)
