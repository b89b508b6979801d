"""Authentication facade: the single entry point used by the UI layer.

Runs one authentication attempt and maps internal outcomes to the small
set of user-facing messages. Success does not return: it raises
``Redirect`` so control leaves the flow. Errors outside the ``AuthError``
taxonomy are re-raised, never turned into a message.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from dashboard_auth.core.auth.credentials import CredentialAuthenticator
from dashboard_auth.core.auth.errors import (
    AuthError,
    CredentialsSignin,
    DatastoreError,
    Redirect,
    SessionError,
)
from dashboard_auth.core.auth.oauth import OAuthClient
from dashboard_auth.core.auth.passwords import PasswordHasher
from dashboard_auth.core.auth.session import SessionIssuer
from dashboard_auth.domain.models import (
    AttemptState,
    AuthOutcome,
    FormState,
    InvalidCredentials,
    ProviderError,
    Rethrow,
    SessionRecord,
    SignupForm,
    SignupState,
    Success,
)
from dashboard_auth.infrastructure.auth.user_store import CredentialStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."
SOMETHING_WENT_WRONG_MESSAGE = "Something went wrong."
OAUTH_FAILED_MESSAGE = "Can not log in. Something went wrong."

SIGNUP_MISSING_FIELDS_MESSAGE = "Missing Fields. Failed to Sign up."
SIGNUP_EMAIL_TAKEN_MESSAGE = "Email already registered."
SIGNUP_DATABASE_ERROR_MESSAGE = "Database Error: Failed to Sign up."
SIGNUP_DISABLED_MESSAGE = "Registration is disabled."

# Form field name -> message shown under that field
SIGNUP_FIELD_MESSAGES = {
    "name": "Please enter a name.",
    "email": "Invalid email address.",
    "password": "Password must be at least 6 characters.",
    "confirmPassword": "Passwords do not match.",
}

_ALLOWED_TRANSITIONS = {
    AttemptState.IDLE: {AttemptState.VALIDATING},
    AttemptState.VALIDATING: {
        AttemptState.AUTHENTICATING,
        AttemptState.REDIRECTING_OAUTH,
        AttemptState.REJECTED,
    },
    AttemptState.AUTHENTICATING: {
        AttemptState.SUCCESS,
        AttemptState.REJECTED,
        AttemptState.ERRORED,
    },
    AttemptState.REDIRECTING_OAUTH: {AttemptState.SUCCESS, AttemptState.ERRORED},
}


@dataclass
class AuthAttempt:
    """State of one authentication attempt. Never shared between requests."""

    kind: str
    state: AttemptState = AttemptState.IDLE
    history: list[AttemptState] = field(default_factory=list)

    def advance(self, new_state: AttemptState) -> None:
        if new_state not in _ALLOWED_TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Illegal {self.kind} transition {self.state.value} -> {new_state.value}")
        self.history.append(self.state)
        self.state = new_state
        logger.debug(f"{self.kind} attempt: {self.history[-1].value} -> {new_state.value}")


def message_for_auth_error(error: AuthError) -> str:
    """User message for a recognised credentials sign-in error."""
    if error.type == CredentialsSignin.type:
        return INVALID_CREDENTIALS_MESSAGE
    return SOMETHING_WENT_WRONG_MESSAGE


def outcome_to_error(outcome: AuthOutcome) -> Optional[BaseException]:
    """Error equivalent of a non-success outcome, ``None`` for ``Success``."""
    if isinstance(outcome, Success):
        return None
    if isinstance(outcome, InvalidCredentials):
        return CredentialsSignin()
    if isinstance(outcome, ProviderError):
        return DatastoreError(outcome.message)
    if isinstance(outcome, Rethrow):
        return outcome.underlying
    raise TypeError(f"Unknown authentication outcome: {outcome!r}")


def _form_value(form: Mapping[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = form.get(name)
        if value is not None:
            return value
    return None


class AuthenticationFacade:
    """Entry point for credentials sign-in, OAuth sign-in and signup."""

    def __init__(
        self,
        authenticator: CredentialAuthenticator,
        session_issuer: SessionIssuer,
        oauth_client: OAuthClient,
        user_store: CredentialStore,
        password_hasher: PasswordHasher,
        registration_enabled: bool = True,
    ):
        self.authenticator = authenticator
        self.session_issuer = session_issuer
        self.oauth_client = oauth_client
        self.user_store = user_store
        self.password_hasher = password_hasher
        self.registration_enabled = registration_enabled

    async def submit_credentials(
        self, prev_state: Optional[FormState], form: Mapping[str, Any]
    ) -> FormState:
        """Credentials sign-in.

        Args:
            prev_state: State from the previous submit (unused; every submit is independent)
            form: ``email``, ``password`` and optional ``callbackUrl``

        Returns:
            FormState carrying the error message

        Raises:
            Redirect: On success, to the callback URL or the default target
            Exception: Any error outside the ``AuthError`` taxonomy
        """
        attempt = AuthAttempt(kind="credentials")
        attempt.advance(AttemptState.VALIDATING)
        email = _form_value(form, "email")
        password = _form_value(form, "password")
        callback_url = _form_value(form, "callbackUrl", "callback_url", "redirectTo")

        attempt.advance(AttemptState.AUTHENTICATING)
        try:
            outcome = await self.authenticator.authenticate(email, password)
            error = outcome_to_error(outcome)
            if error is not None:
                raise error
            issued = await self.session_issuer.issue_session(outcome.identity, callback_url)
        except AuthError as error:
            if isinstance(error, CredentialsSignin):
                attempt.advance(AttemptState.REJECTED)
            else:
                logger.error(f"Credentials sign-in failed: {error.type}: {error}")
                attempt.advance(AttemptState.ERRORED)
            return FormState(message=message_for_auth_error(error))
        except Exception:
            attempt.advance(AttemptState.ERRORED)
            raise

        attempt.advance(AttemptState.SUCCESS)
        raise Redirect(issued.redirect_to, issued.token)

    async def submit_oauth(self, provider_id: str, callback_url: Optional[str] = None) -> Optional[str]:
        """Start OAuth sign-in with ``provider_id``.

        Returns:
            ``"Can not log in. Something went wrong."`` on a recognised failure

        Raises:
            Redirect: On success, to the provider's authorization URL
            Exception: Any error outside the ``AuthError`` taxonomy
        """
        attempt = AuthAttempt(kind="oauth")
        attempt.advance(AttemptState.VALIDATING)
        attempt.advance(AttemptState.REDIRECTING_OAUTH)
        try:
            authorization_url = await self.oauth_client.sign_in(provider_id, callback_url)
        except AuthError as error:
            logger.warning(f"OAuth sign-in failed for {provider_id}: {error.type}: {error}")
            attempt.advance(AttemptState.ERRORED)
            return OAUTH_FAILED_MESSAGE

        attempt.advance(AttemptState.SUCCESS)
        raise Redirect(authorization_url)

    async def complete_oauth(self, provider_id: str, code: str, state: str) -> Optional[str]:
        """Finish OAuth sign-in from the provider callback.

        Returns:
            ``"Can not log in. Something went wrong."`` on a recognised failure

        Raises:
            Redirect: On success, to the target remembered at sign-in
            Exception: Any error outside the ``AuthError`` taxonomy
        """
        attempt = AuthAttempt(kind="oauth-callback")
        attempt.advance(AttemptState.VALIDATING)
        attempt.advance(AttemptState.AUTHENTICATING)
        try:
            identity, redirect_to = await self.oauth_client.handle_callback(provider_id, code, state)
            issued = await self.session_issuer.issue_session(identity, redirect_to)
        except AuthError as error:
            logger.warning(f"OAuth callback failed for {provider_id}: {error.type}: {error}")
            attempt.advance(AttemptState.ERRORED)
            return OAUTH_FAILED_MESSAGE

        attempt.advance(AttemptState.SUCCESS)
        raise Redirect(issued.redirect_to, issued.token)

    async def current_session(self, token: Optional[str]) -> Optional[SessionRecord]:
        """Live session for a session cookie value, ``None`` when signed out."""
        if not token:
            return None
        try:
            return await self.session_issuer.get_session(token)
        except SessionError as error:
            logger.info(f"Session check rejected: {error}")
            return None

    async def signup(self, prev_state: Optional[SignupState], form: Mapping[str, Any]) -> SignupState:
        """Create a credential record and sign the new user in.

        Returns:
            SignupState with per-field errors and/or a message

        Raises:
            Redirect: On success, to the default target
        """
        if not self.registration_enabled:
            return SignupState(message=SIGNUP_DISABLED_MESSAGE)

        try:
            data = SignupForm.model_validate(dict(form))
        except ValidationError as e:
            errors: dict[str, list[str]] = {}
            for err in e.errors():
                name = str(err["loc"][0]) if err["loc"] else ""
                key = "confirmPassword" if name in ("confirm_password", "confirmPassword") else name
                message = SIGNUP_FIELD_MESSAGES.get(key)
                if message and message not in errors.setdefault(key, []):
                    errors[key].append(message)
            return SignupState(errors=errors, message=SIGNUP_MISSING_FIELDS_MESSAGE)

        password_hash = await self.password_hasher.hash_async(data.password)
        try:
            record = await self.user_store.create_credential(data.name, data.email, password_hash)
        except ValueError:
            return SignupState(
                errors={"email": [SIGNUP_EMAIL_TAKEN_MESSAGE]}, message=SIGNUP_EMAIL_TAKEN_MESSAGE
            )
        except DatastoreError as error:
            logger.error(f"Signup failed: {error}")
            return SignupState(message=SIGNUP_DATABASE_ERROR_MESSAGE)

        try:
            issued = await self.session_issuer.issue_session(record.to_identity())
        except AuthError as error:
            logger.error(f"Signup session failed for {record.email}: {error.type}: {error}")
            return SignupState(message=SOMETHING_WENT_WRONG_MESSAGE)

        raise Redirect(issued.redirect_to, issued.token)
