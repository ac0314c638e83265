"""MFA module for disciplina-identity.

Supports:
- TOTP (Google Authenticator, Microsoft Authenticator, Authy, etc.)
- Email OTP (delivery via application hook)
"""

from .challenge import SecondFactorChallengeIssuer
from .otp import InMemoryOtpStore, OtpConfig, generate_email_code, utc_now
from .ports import ChallengeDescriptor, IMfaDeliveryHook, IOtpStore, TotpSetup
from .totp import TotpValidator

__all__: list[str] = [
    # Ports
    "ChallengeDescriptor",
    "IMfaDeliveryHook",
    "IOtpStore",
    "TotpSetup",
    # Email OTP
    "InMemoryOtpStore",
    "OtpConfig",
    "generate_email_code",
    "utc_now",
    # TOTP
    "TotpValidator",
    # Challenges
    "SecondFactorChallengeIssuer",
]
