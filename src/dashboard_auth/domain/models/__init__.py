"""Domain models for Dashboard Auth Service"""

from dashboard_auth.domain.models.api_auth import (
    MIN_PASSWORD_LENGTH,
    AuthMessageResponse,
    CredentialsForm,
    FormState,
    ProviderResponse,
    SessionResponse,
    SignupForm,
    SignupState,
)
from dashboard_auth.domain.models.auth import (
    AttemptState,
    AuthOutcome,
    CredentialRecord,
    InvalidCredentials,
    IssuedSession,
    ProviderError,
    Rethrow,
    SessionRecord,
    Success,
    parse_utc_timestamp,
    to_json_compatible,
)

__all__ = [
    # Auth models
    "AttemptState",
    "AuthOutcome",
    "CredentialRecord",
    "InvalidCredentials",
    "IssuedSession",
    "ProviderError",
    "Rethrow",
    "SessionRecord",
    "Success",
    "parse_utc_timestamp",
    "to_json_compatible",
    # API models
    "MIN_PASSWORD_LENGTH",
    "AuthMessageResponse",
    "CredentialsForm",
    "FormState",
    "ProviderResponse",
    "SessionResponse",
    "SignupForm",
    "SignupState",
]
