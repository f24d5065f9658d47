"""Application services: policy resolution, quota accounting, issuance, redemption."""

from gatepass.application.services.pass_issuer import PassIssuer
from gatepass.application.services.pass_verifier import PassVerifier
from gatepass.application.services.policy_resolver import PolicyResolver
from gatepass.application.services.quota_counter import QuotaCounter

__all__ = [
    "PassIssuer",
    "PassVerifier",
    "PolicyResolver",
    "QuotaCounter",
]
