"""
===============================================================================
TARJETA CRC — corbez/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (repositorios, caché, firma, cola, dispatcher)
    siguiendo DIP.
  - Exponer factories para FastAPI (Depends) y para el worker.
  - Mantener singletons con caching (lru_cache) para recursos compartidos.
  - Cablear los handlers por defecto del EventDispatcher (una sola vez).

Colaboradores:
  - crosscutting.config.get_settings
  - infrastructure.* (implementaciones)
  - application.usecases.* (casos de uso)

Decisiones runtime:
  - APP_ENV=test o DATABASE_URL vacío => repositorios in-memory.
  - REDIS_URL vacío (o APP_ENV=test) => cola in-memory.

Notas:
  - Este archivo NO contiene lógica de negocio ni depende de FastAPI.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from redis import Redis

from .application import AccessPolicy, EventDispatcher
from .application.clock import utcnow
from .application.events.handlers import register_default_handlers
from .application.usecases.coupons import (
    ClaimCouponUseCase,
    CouponLookupUseCase,
    ExpireCouponsUseCase,
    GenerateSavingsReportUseCase,
    ListEmployeeCouponsUseCase,
    RedeemCouponUseCase,
    RegenerateCouponTokenUseCase,
    VerifyCouponUseCase,
)
from .application.usecases.discounts import (
    CalculateCompanySavingsUseCase,
    CreateDiscountUseCase,
    DeleteDiscountUseCase,
    ListCompanyDiscountsUseCase,
    ListMerchantDiscountsUseCase,
    MerchantDiscountCache,
    ResolveDiscountUseCase,
    ToggleDiscountUseCase,
    UpdateDiscountUseCase,
)
from .application.usecases.moderation import (
    BanEmployeeUseCase,
    GetModerationHistoryUseCase,
    ListPendingAppealsUseCase,
    ModerationPolicy,
    ModerationRecorder,
    ProcessExpiredSuspensionsUseCase,
    ReactivateCompanyUseCase,
    ReactivateMerchantUseCase,
    ResolveAppealUseCase,
    SubmitAppealUseCase,
    SuspendCompanyUseCase,
    SuspendEmployeeUseCase,
    SuspendMerchantUseCase,
    UnsuspendEmployeeUseCase,
    WarnEmployeeUseCase,
)
from .application.usecases.passes import (
    IssueEmployeePassUseCase,
    RevokeEmployeePassUseCase,
    VerifyEmployeePassUseCase,
)
from .crosscutting.config import get_settings
from .domain.repositories import (
    AuditEventRepository,
    CompanyRepository,
    CouponRepository,
    DiscountRepository,
    EmployeePassRepository,
    EmployeeRepository,
    MerchantRepository,
    ModerationActionRepository,
)
from .domain.services import JobQueue, KeyValueCache, TokenSigner
from .infrastructure.cache import KeyValueCacheFacade
from .infrastructure.queue import (
    FixedWindowRateLimiter,
    InMemoryJobQueue,
    RQJobQueue,
    RQQueueConfig,
)
from .infrastructure.repositories import (
    InMemoryAuditEventRepository,
    InMemoryCompanyRepository,
    InMemoryCouponRepository,
    InMemoryDiscountRepository,
    InMemoryEmployeePassRepository,
    InMemoryEmployeeRepository,
    InMemoryMerchantRepository,
    InMemoryModerationActionRepository,
    PostgresAuditEventRepository,
    PostgresCompanyRepository,
    PostgresCouponRepository,
    PostgresDiscountRepository,
    PostgresEmployeePassRepository,
    PostgresEmployeeRepository,
    PostgresMerchantRepository,
    PostgresModerationActionRepository,
)
from .infrastructure.security import HmacTokenSigner

# =============================================================================
# Helpers internos
# =============================================================================


def _is_test_env() -> bool:
    """app_env ∈ {"test", "testing", "ci"} => se favorecen in-memory adapters."""
    return get_settings().is_test()


def _use_in_memory_store() -> bool:
    return _is_test_env() or not get_settings().database_url.strip()


@lru_cache(maxsize=1)
def get_redis_connection() -> Redis | None:
    settings = get_settings()
    if _is_test_env() or not settings.redis_url.strip():
        return None
    return Redis.from_url(
        settings.redis_url,
        socket_connect_timeout=2,
        socket_timeout=5,
        health_check_interval=30,
    )


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_employee_repository() -> EmployeeRepository:
    if _use_in_memory_store():
        return InMemoryEmployeeRepository()
    return PostgresEmployeeRepository()


@lru_cache(maxsize=1)
def get_merchant_repository() -> MerchantRepository:
    if _use_in_memory_store():
        return InMemoryMerchantRepository()
    return PostgresMerchantRepository()


@lru_cache(maxsize=1)
def get_company_repository() -> CompanyRepository:
    if _use_in_memory_store():
        return InMemoryCompanyRepository()
    return PostgresCompanyRepository()


@lru_cache(maxsize=1)
def get_discount_repository() -> DiscountRepository:
    if _use_in_memory_store():
        return InMemoryDiscountRepository()
    return PostgresDiscountRepository()


@lru_cache(maxsize=1)
def get_coupon_repository() -> CouponRepository:
    if _use_in_memory_store():
        return InMemoryCouponRepository()
    return PostgresCouponRepository()


@lru_cache(maxsize=1)
def get_pass_repository() -> EmployeePassRepository:
    if _use_in_memory_store():
        return InMemoryEmployeePassRepository()
    return PostgresEmployeePassRepository()


@lru_cache(maxsize=1)
def get_moderation_action_repository() -> ModerationActionRepository:
    if _use_in_memory_store():
        return InMemoryModerationActionRepository()
    return PostgresModerationActionRepository()


@lru_cache(maxsize=1)
def get_audit_repository() -> AuditEventRepository:
    if _use_in_memory_store():
        return InMemoryAuditEventRepository()
    return PostgresAuditEventRepository()


# =============================================================================
# Servicios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_cache() -> KeyValueCache:
    settings = get_settings()
    redis_url = "" if _is_test_env() else settings.redis_url.strip()
    return KeyValueCacheFacade.create(
        redis_url=redis_url, max_entries=settings.cache_max_entries
    )


@lru_cache(maxsize=1)
def get_token_signer() -> TokenSigner:
    return HmacTokenSigner(get_settings().get_verification_secrets())


@lru_cache(maxsize=1)
def get_job_queue() -> JobQueue:
    redis_conn = get_redis_connection()
    if redis_conn is None:
        return InMemoryJobQueue()
    return RQJobQueue(
        redis=redis_conn, config=RQQueueConfig.from_settings(get_settings())
    )


@lru_cache(maxsize=1)
def get_job_rate_limiter() -> FixedWindowRateLimiter | None:
    redis_conn = get_redis_connection()
    if redis_conn is None:
        return None
    settings = get_settings()
    return FixedWindowRateLimiter(
        redis_conn,
        max_requests=settings.rate_limit_max,
        window_ms=settings.rate_limit_window_ms,
    )


@lru_cache(maxsize=1)
def get_event_dispatcher() -> EventDispatcher:
    """Dispatcher explícito (sin registry global) con handlers por defecto."""
    dispatcher = EventDispatcher()
    register_default_handlers(
        dispatcher,
        audit_repository=get_audit_repository(),
        cache=get_cache(),
        employees=get_employee_repository(),
        job_queue=get_job_queue(),
    )
    return dispatcher


@lru_cache(maxsize=1)
def get_access_policy() -> AccessPolicy:
    return AccessPolicy(get_employee_repository(), get_merchant_repository())


@lru_cache(maxsize=1)
def get_discount_cache() -> MerchantDiscountCache:
    return MerchantDiscountCache(
        get_discount_repository(),
        get_cache(),
        ttl_seconds=get_settings().discount_cache_ttl_seconds,
    )


def get_moderation_policy() -> ModerationPolicy:
    return ModerationPolicy.from_settings(get_settings())


def get_moderation_recorder() -> ModerationRecorder:
    return ModerationRecorder(
        get_moderation_action_repository(), get_event_dispatcher(), utcnow
    )


# =============================================================================
# Casos de uso: descuentos
# =============================================================================


def get_resolve_discount_use_case() -> ResolveDiscountUseCase:
    return ResolveDiscountUseCase(get_discount_cache())


def get_create_discount_use_case() -> CreateDiscountUseCase:
    return CreateDiscountUseCase(
        get_discount_repository(),
        get_merchant_repository(),
        get_discount_cache(),
        get_event_dispatcher(),
    )


def get_update_discount_use_case() -> UpdateDiscountUseCase:
    return UpdateDiscountUseCase(
        get_discount_repository(),
        get_merchant_repository(),
        get_discount_cache(),
        get_event_dispatcher(),
    )


def get_toggle_discount_use_case() -> ToggleDiscountUseCase:
    return ToggleDiscountUseCase(
        get_discount_repository(),
        get_merchant_repository(),
        get_discount_cache(),
        get_event_dispatcher(),
    )


def get_delete_discount_use_case() -> DeleteDiscountUseCase:
    return DeleteDiscountUseCase(
        get_discount_repository(),
        get_merchant_repository(),
        get_discount_cache(),
        get_event_dispatcher(),
    )


def get_list_merchant_discounts_use_case() -> ListMerchantDiscountsUseCase:
    return ListMerchantDiscountsUseCase(get_discount_repository())


def get_list_company_discounts_use_case() -> ListCompanyDiscountsUseCase:
    return ListCompanyDiscountsUseCase(get_discount_repository())


def get_company_savings_use_case() -> CalculateCompanySavingsUseCase:
    return CalculateCompanySavingsUseCase(
        get_company_repository(),
        get_discount_repository(),
        get_merchant_repository(),
        get_employee_repository(),
    )


# =============================================================================
# Casos de uso: cupones
# =============================================================================


def get_claim_coupon_use_case() -> ClaimCouponUseCase:
    settings = get_settings()
    return ClaimCouponUseCase(
        get_coupon_repository(),
        get_discount_repository(),
        get_merchant_repository(),
        get_access_policy(),
        get_token_signer(),
        get_cache(),
        get_event_dispatcher(),
        public_base_url=settings.public_base_url,
        cache_ttl_seconds=settings.coupon_cache_ttl_seconds,
    )


def get_redeem_coupon_use_case() -> RedeemCouponUseCase:
    return RedeemCouponUseCase(
        get_coupon_repository(),
        get_discount_repository(),
        get_employee_repository(),
        get_access_policy(),
        get_cache(),
        get_event_dispatcher(),
        referral_points=get_settings().referral_points,
    )


def get_verify_coupon_use_case() -> VerifyCouponUseCase:
    return VerifyCouponUseCase(
        get_coupon_repository(),
        get_employee_repository(),
        get_merchant_repository(),
        get_discount_repository(),
        get_token_signer(),
        get_cache(),
        cache_ttl_seconds=get_settings().coupon_cache_ttl_seconds,
    )


def get_list_employee_coupons_use_case() -> ListEmployeeCouponsUseCase:
    return ListEmployeeCouponsUseCase(
        get_coupon_repository(),
        get_discount_repository(),
        get_access_policy(),
        public_base_url=get_settings().public_base_url,
    )


def get_coupon_lookup_use_case() -> CouponLookupUseCase:
    return CouponLookupUseCase(get_coupon_repository())


def get_regenerate_coupon_token_use_case() -> RegenerateCouponTokenUseCase:
    settings = get_settings()
    return RegenerateCouponTokenUseCase(
        get_coupon_repository(),
        get_token_signer(),
        get_cache(),
        public_base_url=settings.public_base_url,
        cache_ttl_seconds=settings.coupon_cache_ttl_seconds,
    )


def get_expire_coupons_use_case() -> ExpireCouponsUseCase:
    return ExpireCouponsUseCase(get_coupon_repository(), get_event_dispatcher())


def get_savings_report_use_case() -> GenerateSavingsReportUseCase:
    return GenerateSavingsReportUseCase(
        get_employee_repository(),
        get_coupon_repository(),
        get_discount_repository(),
        get_merchant_repository(),
        get_cache(),
    )


# =============================================================================
# Casos de uso: pases
# =============================================================================


def get_issue_pass_use_case() -> IssueEmployeePassUseCase:
    settings = get_settings()
    return IssueEmployeePassUseCase(
        get_employee_repository(),
        get_pass_repository(),
        get_access_policy(),
        get_token_signer(),
        get_cache(),
        get_event_dispatcher(),
        public_base_url=settings.public_base_url,
        cache_ttl_seconds=settings.pass_cache_ttl_seconds,
    )


def get_verify_pass_use_case() -> VerifyEmployeePassUseCase:
    return VerifyEmployeePassUseCase(
        get_pass_repository(),
        get_employee_repository(),
        get_token_signer(),
        get_cache(),
        cache_ttl_seconds=get_settings().pass_cache_ttl_seconds,
    )


def get_revoke_pass_use_case() -> RevokeEmployeePassUseCase:
    return RevokeEmployeePassUseCase(
        get_pass_repository(), get_cache(), get_event_dispatcher()
    )


# =============================================================================
# Casos de uso: moderación
# =============================================================================


def get_suspend_employee_use_case() -> SuspendEmployeeUseCase:
    return SuspendEmployeeUseCase(
        get_employee_repository(),
        get_coupon_repository(),
        get_revoke_pass_use_case(),
        get_moderation_recorder(),
        get_moderation_policy(),
    )


def get_warn_employee_use_case() -> WarnEmployeeUseCase:
    return WarnEmployeeUseCase(
        get_employee_repository(),
        get_suspend_employee_use_case(),
        get_moderation_recorder(),
        get_moderation_policy(),
    )


def get_unsuspend_employee_use_case() -> UnsuspendEmployeeUseCase:
    return UnsuspendEmployeeUseCase(
        get_employee_repository(), get_moderation_recorder(), get_moderation_policy()
    )


def get_ban_employee_use_case() -> BanEmployeeUseCase:
    return BanEmployeeUseCase(
        get_employee_repository(),
        get_coupon_repository(),
        get_revoke_pass_use_case(),
        get_moderation_recorder(),
        get_moderation_policy(),
    )


def get_suspend_merchant_use_case() -> SuspendMerchantUseCase:
    return SuspendMerchantUseCase(
        get_merchant_repository(), get_moderation_recorder(), get_moderation_policy()
    )


def get_reactivate_merchant_use_case() -> ReactivateMerchantUseCase:
    return ReactivateMerchantUseCase(get_merchant_repository(), get_moderation_recorder())


def get_suspend_company_use_case() -> SuspendCompanyUseCase:
    return SuspendCompanyUseCase(
        get_company_repository(),
        get_employee_repository(),
        get_moderation_recorder(),
        get_moderation_policy(),
    )


def get_reactivate_company_use_case() -> ReactivateCompanyUseCase:
    return ReactivateCompanyUseCase(get_company_repository(), get_moderation_recorder())


def get_process_expired_suspensions_use_case() -> ProcessExpiredSuspensionsUseCase:
    return ProcessExpiredSuspensionsUseCase(
        get_employee_repository(),
        get_merchant_repository(),
        get_company_repository(),
        get_moderation_recorder(),
    )


def get_moderation_history_use_case() -> GetModerationHistoryUseCase:
    return GetModerationHistoryUseCase(get_moderation_action_repository())


def get_pending_appeals_use_case() -> ListPendingAppealsUseCase:
    return ListPendingAppealsUseCase(get_moderation_action_repository())


def get_submit_appeal_use_case() -> SubmitAppealUseCase:
    return SubmitAppealUseCase(get_moderation_action_repository())


def get_resolve_appeal_use_case() -> ResolveAppealUseCase:
    return ResolveAppealUseCase(get_moderation_action_repository())


# =============================================================================
# Reset (tests)
# =============================================================================


def reset_container() -> None:
    """Limpia singletons (tests / recarga de settings)."""
    if get_event_dispatcher.cache_info().currsize:
        get_event_dispatcher().shutdown(wait=True)
    for factory in (
        get_redis_connection,
        get_employee_repository,
        get_merchant_repository,
        get_company_repository,
        get_discount_repository,
        get_coupon_repository,
        get_pass_repository,
        get_moderation_action_repository,
        get_audit_repository,
        get_cache,
        get_token_signer,
        get_job_queue,
        get_job_rate_limiter,
        get_event_dispatcher,
        get_access_policy,
        get_discount_cache,
    ):
        factory.cache_clear()
