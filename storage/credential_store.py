"""
File-based persistence for OAuth2 bearer credentials.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from models.credential import Credential

logger = logging.getLogger(__name__)

CACHE_FILE_MODE = 0o600


# Custom exceptions
class CredentialError(Exception):
    """Base credential error."""
    pass

class CredentialUnavailableError(CredentialError):
    """No usable credential is cached; a new one has to be acquired."""
    pass

class CredentialNotFoundError(CredentialUnavailableError):
    """The credential cache file does not exist."""
    pass

class CredentialExpiredError(CredentialUnavailableError):
    """The cached credential is past its expiry and cannot be refreshed."""
    pass

class CredentialCorruptError(CredentialUnavailableError):
    """The credential cache file does not hold a valid record."""
    pass

class CredentialStoreError(CredentialError):
    """The credential cache could not be read or written."""
    pass


class CredentialStore:
    """
    Loads and saves the cached credential record.

    ``lock`` is re-entrant and guards load+refresh+save sequences so that
    concurrent refreshes are serialized.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.lock = threading.RLock()

    def load(self, path: str) -> Credential:
        """
        Read the credential stored at ``path``.

        Raises:
            CredentialNotFoundError: nothing cached at ``path``
            CredentialCorruptError: the file is not a valid record
            CredentialExpiredError: expired and no refresh token
            CredentialStoreError: the file exists but cannot be read
        """
        cache_path = Path(path)
        with self.lock:
            try:
                with open(cache_path, "r", encoding="utf-8") as f:
                    raw = f.read()
            except FileNotFoundError as e:
                raise CredentialNotFoundError(f"no cached credentials at {cache_path}") from e
            except OSError as e:
                raise CredentialStoreError(f"unable to read credential cache {cache_path}: {e}") from e

        try:
            credential = Credential.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise CredentialCorruptError(f"credential cache {cache_path} is not a valid record: {e}") from e

        # Only happens when the granted scopes did not include offline access
        if not credential.is_usable():
            self.logger.warning(
                f"youtube authentication tokens have expired (expired: {credential.expiry}, "
                f"refresh token present: {credential.has_refresh_token})"
            )
            raise CredentialExpiredError(f"cached credential expired at {credential.expiry}")

        self.logger.debug(f"loaded cached credentials from {cache_path}")
        return credential

    def save(self, path: str, credential: Credential) -> None:
        """
        Atomically replace the record at ``path``.

        The payload is written to a sibling temporary file that is only
        readable by the owner, flushed to disk, then renamed over the target,
        so readers see either the old record or the new one.
        """
        cache_path = Path(path)
        self.logger.debug(f"saving credentials to secrets cache {cache_path}")

        with self.lock:
            try:
                cache_path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=str(cache_path.parent), prefix=f".{cache_path.name}.")
            except OSError as e:
                raise CredentialStoreError(f"unable to cache oauth token at {cache_path}: {e}") from e

            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    os.fchmod(f.fileno(), CACHE_FILE_MODE)
                    f.write(credential.to_json())
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, cache_path)
                os.chmod(cache_path, CACHE_FILE_MODE)
            except OSError as e:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
                raise CredentialStoreError(f"unable to cache oauth token at {cache_path}: {e}") from e
