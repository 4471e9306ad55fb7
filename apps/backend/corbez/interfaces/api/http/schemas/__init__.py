from .verify import CouponVerificationResponse, PassVerificationResponse

__all__ = ["CouponVerificationResponse", "PassVerificationResponse"]
