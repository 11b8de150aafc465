"""
Microsoft Graph sign-in for the provider's mailbox (MSAL device code flow).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

import keyring
import msal
from keyring.errors import KeyringError, PasswordDeleteError
from rich.console import Console

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

KEYRING_SERVICE_NAME = "agendaai"
DEFAULT_CACHE_FILE = Path.home() / ".agendaai_token_cache.json"


class TokenCacheStore:
    """
    Persists the serialized MSAL cache for one app registration.

    Prefers the system keyring; after the first keyring failure everything
    goes to an owner-only file instead.
    """

    def __init__(self, key: str, cache_file: Path = DEFAULT_CACHE_FILE):
        self.key = key
        self.cache_file = cache_file
        self.backend = "keyring"

    def load(self) -> Optional[str]:
        if self.backend == "keyring":
            try:
                stored = keyring.get_password(KEYRING_SERVICE_NAME, self.key)
            except KeyringError as exc:
                self._fall_back(f"read failed: {exc}")
            else:
                if stored is not None:
                    return stored

        if not self.cache_file.exists():
            return None

        try:
            return self.cache_file.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Token cache file %s unreadable: %s", self.cache_file, exc)
            return None

    def save(self, serialized: str) -> None:
        if self.backend == "keyring":
            try:
                keyring.set_password(KEYRING_SERVICE_NAME, self.key, serialized)
                return
            except KeyringError as exc:
                self._fall_back(f"write failed: {exc}")

        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            self.cache_file.write_text(serialized, encoding="utf-8")
            self.cache_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Token cache not saved to %s: %s", self.cache_file, exc)

    def clear(self) -> None:
        self.cache_file.unlink(missing_ok=True)
        try:
            keyring.delete_password(KEYRING_SERVICE_NAME, self.key)
        except PasswordDeleteError:
            pass  # nothing stored
        except KeyringError as exc:
            logger.warning("Keyring entry for %s not removed: %s", self.key, exc)

    def _fall_back(self, reason: str) -> None:
        logger.warning("Keyring unavailable (%s); using plaintext token cache %s", reason, self.cache_file)
        self.backend = "file"


def _print_device_code(flow: Dict[str, str]) -> None:
    console = Console()
    console.print("\n[bold cyan]🔐 Microsoft sign-in required[/bold cyan]")
    console.print("Sign in with the provider's account so its calendar can be read.\n")
    console.print(f"1. Open [bold cyan]{flow['verification_uri']}[/bold cyan]")
    console.print(f"2. Enter the code [bold yellow]{flow['user_code']}[/bold yellow]")
    console.print("[dim]Waiting for sign-in...[/dim]\n")


class GraphAuthenticator:
    """Acquires Graph tokens that can read the provider's free/busy data."""

    SCOPES = ["Calendars.Read", "Calendars.Read.Shared"]

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        store: TokenCacheStore | None = None,
        show_device_code: Callable[[Dict[str, str]], None] = _print_device_code,
        app: msal.PublicClientApplication | None = None
    ):
        """
        Args:
            client_id: Azure AD application (client) ID
            tenant_id: Azure AD tenant ID
            store: Where the token cache is persisted
            show_device_code: Called with the device flow to tell the user where to sign in
            app: Preconfigured MSAL application (its cache must be ``self.cache``)
        """
        self.store = store or TokenCacheStore(key=f"{client_id}:{tenant_id}")
        self.show_device_code = show_device_code
        self.cache = msal.SerializableTokenCache()

        serialized = self.store.load()
        if serialized:
            try:
                self.cache.deserialize(serialized)
            except ValueError as exc:
                logger.warning("Ignoring corrupt token cache: %s", exc)

        self.app = app or msal.PublicClientApplication(
            client_id=client_id,
            authority=f"https://login.microsoftonline.com/{tenant_id}",
            token_cache=self.cache
        )

    @property
    def cache_backend(self) -> str:
        return self.store.backend

    def get_access_token(self, force_refresh: bool = False) -> str:
        """
        Return an access token, signing in only when no cached account works.

        Raises:
            AuthenticationError: If sign-in fails
        """
        result = None if force_refresh else self._acquire_silently()

        if result is None:
            result = self._acquire_with_device_code()

        if self.cache.has_state_changed:
            self.store.save(self.cache.serialize())

        return result["access_token"]

    def clear_cache(self) -> None:
        """Forget cached tokens; the next call signs in again."""
        self.store.clear()
        for account in self.app.get_accounts():
            self.app.remove_account(account)

    def _acquire_silently(self) -> Optional[Dict[str, str]]:
        for account in self.app.get_accounts():
            result = self.app.acquire_token_silent(scopes=self.SCOPES, account=account)
            if result and "access_token" in result:
                logger.debug("Using cached Graph token for %s", account.get("username"))
                return result
        return None

    def _acquire_with_device_code(self) -> Dict[str, str]:
        flow = self.app.initiate_device_flow(scopes=self.SCOPES)

        if "user_code" not in flow:
            raise AuthenticationError(
                f"Device flow could not start: {flow.get('error_description', 'unknown error')}"
            )

        self.show_device_code(flow)
        result = self.app.acquire_token_by_device_flow(flow)

        if "access_token" not in result:
            raise AuthenticationError(f"Sign-in failed: {result.get('error_description', 'unknown error')}")

        logger.info("Signed in to Microsoft Graph")
        return result
