# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import getpass
from collections.abc import Callable
from dataclasses import dataclass

from qjob_lib.core.error import AuthenticationError
from qjob_lib.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Username and password for the cluster head node."""

    user: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, password='***')"


class CredentialProvider:
    """
    Supplies credentials for the cluster head node.

    Credentials are requested interactively on first use and cached for
    the lifetime of the provider. Share one provider between transports
    to ask for the password only once per session.
    """

    def __init__(
        self,
        host: str,
        user: str | None = None,
        prompt_user: Callable[[str], str] = input,
        prompt_password: Callable[[str], str] = getpass.getpass,
    ):
        """
        Initialize the provider.

        Args:
            host (str): Hostname the credentials are for.
            user (str | None): Fixed username. If None, the username is prompted for as well.
            prompt_user (Callable[[str], str]): Function asking for the username.
            prompt_password (Callable[[str], str]): Function asking for the password.
        """
        self._host = host
        self._user = user
        self._prompt_user = prompt_user
        self._prompt_password = prompt_password
        self._cached: Credentials | None = None

    def get(self, force: bool = False) -> Credentials:
        """
        Return the credentials, prompting for them if they are not cached.

        Args:
            force (bool): Discard the cached credentials and prompt again,
                e.g. after the previous credentials were rejected.

        Returns:
            Credentials: The credentials.

        Raises:
            AuthenticationError: If the user cancels by entering neither a username nor a password.
        """
        if self._cached and not force:
            return self._cached

        user = self._user or self._prompt_user(f"Username for {self._host}: ").strip()
        password = self._prompt_password(f"Password for {user}@{self._host}: ")

        if not user and not password:
            raise AuthenticationError("User cancelled authentication.")

        self._cached = Credentials(user, password)
        logger.debug(f"Obtained credentials for '{user}@{self._host}'.")
        return self._cached

    def clear(self) -> None:
        """Forget the cached credentials."""
        self._cached = None
