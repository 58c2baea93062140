"""
Google OAuth2 authorization: cached console login and headless service accounts.

Usage:
    authorizer = create_authorizer(settings)
    transport = authorizer.obtain_transport()
    client = YouTubeLiveClient(transport)
"""

import logging
from abc import ABC, abstractmethod
from datetime import timezone
from typing import Callable, List, Optional, TextIO

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from models.credential import ClientConfig, Credential
from storage.credential_store import (
    CredentialError,
    CredentialStore,
    CredentialUnavailableError
)
from utils.error_utils import ConfigurationError

# Setup logging
logger = logging.getLogger(__name__)


class AuthorizationError(CredentialError):
    """A credential could not be minted or exchanged."""
    pass


class PersistingCredentials(Credentials):
    """User credentials that write every refreshed token back to the cache."""

    def __init__(self, *args, store: Optional[CredentialStore] = None, credential_path: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._store = store
        self._credential_path = credential_path

    def refresh(self, request) -> None:
        if self._store is None:
            super().refresh(request)
            return

        with self._store.lock:
            super().refresh(request)
            self._store.save(self._credential_path, Credential.from_google(self))
        logger.debug(f"refreshed access token and updated secrets cache {self._credential_path}")

    @classmethod
    def from_credential(
        cls,
        credential: Credential,
        client_config: ClientConfig,
        store: CredentialStore,
        credential_path: str
    ) -> "PersistingCredentials":
        # google-auth compares expiry against naive UTC timestamps
        expiry = None
        if credential.expiry is not None:
            expiry = credential.expiry.astimezone(timezone.utc).replace(tzinfo=None)

        return cls(
            credential.access_token,
            refresh_token=credential.refresh_token,
            token_uri=client_config.token_uri,
            client_id=client_config.client_id,
            client_secret=client_config.client_secret,
            scopes=list(client_config.scopes) or None,
            expiry=expiry,
            store=store,
            credential_path=credential_path,
        )


class AuthenticatedTransport:
    """
    Authenticated HTTP access for Google API clients.

    httplib2 connections are not thread-safe, so every request gets its own
    ``AuthorizedHttp`` sharing the same credentials.
    """

    def __init__(self, credentials, timeout: float = 30.0):
        self.credentials = credentials
        self.timeout = timeout

    def new_http(self) -> google_auth_httplib2.AuthorizedHttp:
        return google_auth_httplib2.AuthorizedHttp(self.credentials, http=httplib2.Http(timeout=self.timeout))

    def ensure_fresh(self, request=None) -> None:
        """Refresh the access token now unless it is still valid."""
        if self.credentials.valid:
            return
        try:
            self.credentials.refresh(request or Request())
        except GoogleAuthError as e:
            raise AuthorizationError(f"unable to refresh access token: {e}") from e


class AuthorizationFlow(ABC):
    """Strategy that produces Google credentials for the API client."""

    @abstractmethod
    def obtain_credentials(self):
        """Return ready-to-use ``google.auth`` credentials."""


class InteractiveAuthorizationFlow(AuthorizationFlow):
    """
    Cached user credentials with a console authorization-code fallback.

    The cached record is used when present and usable; otherwise the operator
    is shown an authorization URL and the call blocks until a code is entered.
    """

    def __init__(
        self,
        client_config: ClientConfig,
        credential_path: str,
        store: Optional[CredentialStore] = None,
        code_reader: Callable[[str], str] = input,
        output: Optional[TextIO] = None,
        force: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        self.client_config = client_config
        self.credential_path = credential_path
        self.store = store or CredentialStore()
        self.code_reader = code_reader
        self.output = output
        self.force = force
        self.logger = logger or logging.getLogger(__name__)

    def obtain_credentials(self) -> PersistingCredentials:
        with self.store.lock:
            credential = None
            if not self.force:
                try:
                    credential = self.store.load(self.credential_path)
                except CredentialUnavailableError as e:
                    self.logger.warning(f"unable to get token from secrets file: {e}")
                    self.logger.warning("trying to get token using the console authorization flow instead ...")

            if credential is None:
                credential = self.exchange_code()
                self.store.save(self.credential_path, credential)

        self.logger.debug(
            f"successfully obtained access and refresh tokens for oauth client (cache: {self.credential_path})"
        )
        return PersistingCredentials.from_credential(
            credential, self.client_config, self.store, self.credential_path
        )

    def _new_flow(self) -> Flow:
        return Flow.from_client_config(
            self.client_config.to_client_secrets(),
            scopes=list(self.client_config.scopes),
            redirect_uri=self.client_config.redirect_uri
        )

    def exchange_code(self) -> Credential:
        """Run the console authorization-code exchange and return the new record."""
        flow = self._new_flow()
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")

        print(f"Go to: \n{auth_url}", file=self.output)
        print("After approving access, copy the 'code' parameter from the page you are redirected to.", file=self.output)

        try:
            code = self.code_reader("Enter Authorization Code: ")
        except EOFError as e:
            raise AuthorizationError("unable to read authorization code from stdin") from e

        code = (code or "").strip()
        if not code:
            raise AuthorizationError("no authorization code was provided")

        try:
            flow.fetch_token(code=code)
        except Exception as e:
            raise AuthorizationError(f"unable to retrieve token from web: {e}") from e

        return Credential.from_google(flow.credentials)


class ServiceAccountAuthorizationFlow(AuthorizationFlow):
    """
    Headless credentials minted from a service-account private key.

    Tokens are short-lived and cheap to mint, so nothing is cached on disk.
    """

    def __init__(
        self,
        key_file: Optional[str],
        scopes: List[str],
        subject: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.key_file = key_file
        self.scopes = list(scopes)
        self.subject = subject
        self.logger = logger or logging.getLogger(__name__)

    def obtain_credentials(self) -> service_account.Credentials:
        if not self.key_file:
            raise ConfigurationError(
                "a service-account key file is required in headless mode. specify --auth-config "
                "or use the environment variable YLS_AUTH_CONFIG"
            )
        if not self.subject:
            self.logger.warning("no delegated subject configured for the service account; using its own identity")

        try:
            credentials = service_account.Credentials.from_service_account_file(
                self.key_file,
                scopes=self.scopes,
                subject=self.subject
            )
        except (OSError, ValueError) as e:
            raise AuthorizationError(f"unable to load service-account key {self.key_file}: {e}") from e

        self.logger.debug(f"created service-account credentials (subject: {self.subject})")
        return credentials


class Authorizer:
    """Turns an authorization flow into an authenticated transport."""

    def __init__(self, flow: AuthorizationFlow, timeout: float = 30.0, logger: Optional[logging.Logger] = None):
        self.flow = flow
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def obtain_transport(self) -> AuthenticatedTransport:
        credentials = self.flow.obtain_credentials()
        self.logger.info(f"obtained credentials using {type(self.flow).__name__}")
        return AuthenticatedTransport(credentials, timeout=self.timeout)


def create_authorizer(
    settings,
    store: Optional[CredentialStore] = None,
    force: bool = False,
    code_reader: Callable[[str], str] = input
) -> Authorizer:
    """
    Select the authorization flow from settings.

    Raises:
        ConfigurationError: missing or malformed client configuration
    """
    if settings.headless:
        flow = ServiceAccountAuthorizationFlow(settings.auth_config, settings.scopes, subject=settings.subject)
    else:
        client_config = ClientConfig.from_file(settings.auth_config, settings.scopes)
        flow = InteractiveAuthorizationFlow(
            client_config,
            settings.secrets_cache,
            store=store,
            code_reader=code_reader,
            force=force
        )
    return Authorizer(flow, timeout=settings.http_timeout)
