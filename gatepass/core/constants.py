"""Core constants: built-in policy defaults and shared literal values.

The defaults here are what the system falls back to when a policy document
is missing or cannot be read (fail-open). Keep them in one place so the
fail-open behavior is auditable.
"""

# Monthly pass quota when neither the unit nor the project sets one.
DEFAULT_MONTHLY_LIMIT = 30

# Hours a pass stays valid when the project does not configure a duration.
DEFAULT_VALIDITY_DURATION_HOURS = 2

# Membership role whose pass generation can be blocked project-wide.
FAMILY_ROLE = "family"

# Membership roles allowed to change project and unit policy.
DEFAULT_POLICY_ADMIN_ROLES = ("admin",)

# Prefix of public pass identifiers (e.g. GP-K3J9...).
PASS_ID_PREFIX = "GP-"

# Bytes of entropy in a verification token (before base64url encoding).
VERIFICATION_TOKEN_BYTES = 32

# Quota period key format (calendar month).
PERIOD_KEY_FORMAT = "%Y-%m"

# Optimistic write retries for the quota ledger and redemption.
DEFAULT_QUOTA_RESERVATION_ATTEMPTS = 5
REDEEM_ATTEMPTS = 3
