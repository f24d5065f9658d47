"""Application interfaces (ports). Infrastructure implements these."""

from gatepass.application.interfaces.repositories import (
    IGuestPassRepository,
    IPolicyProvider,
    IPolicyWriter,
    IQuotaLedger,
    IUnitUsageRepository,
    IUserDirectory,
    PolicyUnavailableError,
)
from gatepass.application.interfaces.services import (
    IClock,
    ICredentialRenderer,
    IObjectStore,
)

__all__ = [
    "IClock",
    "ICredentialRenderer",
    "IGuestPassRepository",
    "IObjectStore",
    "IPolicyProvider",
    "IPolicyWriter",
    "IQuotaLedger",
    "IUnitUsageRepository",
    "IUserDirectory",
    "PolicyUnavailableError",
]
