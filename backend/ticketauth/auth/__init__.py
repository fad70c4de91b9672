"""
Authentication Module

Handles registration, password login with OTP issuance, OTP verification,
session management and JWT bearer tokens.
"""

from .controller import AuthFlowController, LoginResult, VerifyResult
from .jwt_handler import JWTHandler

__all__ = [
    "AuthFlowController",
    "JWTHandler",
    "LoginResult",
    "VerifyResult",
]
