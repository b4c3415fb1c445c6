# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from fabric import Connection
from paramiko.ssh_exception import AuthenticationException

from qjob_lib.core.config import CFG
from qjob_lib.core.error import AuthenticationError, QJobError, TransportError
from qjob_lib.core.logger import get_logger

from .credentials import CredentialProvider
from .interface import Transport

logger = get_logger(__name__)


class SSHTransport(Transport):
    """
    Transport executing commands and copying files over SSH using fabric.

    The connection is opened lazily by the first operation. Authentication
    uses either a private key file or a password supplied by a CredentialProvider.
    Rejected passwords are asked for again, at most `max_attempts` times.
    """

    def __init__(
        self,
        host: str,
        credentials: CredentialProvider | None = None,
        user: str | None = None,
        port: int = CFG.cluster.port,
        key_filename: Path | None = None,
        max_attempts: int = CFG.ssh.auth_attempts,
    ):
        """
        Initialize the transport.

        Args:
            host (str): Hostname of the cluster head node.
            credentials (CredentialProvider | None): Provider of the username and password.
                Required unless `key_filename` is given.
            user (str | None): Username used with `key_filename`.
            port (int): SSH port of the head node.
            key_filename (Path | None): Private key file used for authentication.
            max_attempts (int): Maximum number of password attempts.

        Raises:
            QJobError: If neither a credential provider nor a key file is provided.
        """
        if credentials is None and key_filename is None:
            raise QJobError(
                "Either a credential provider or a key file must be provided."
            )

        self._host = host
        self._credentials = credentials
        self._user = user
        self._port = port
        self._key_filename = key_filename
        self._max_attempts = max_attempts
        self._conn: Connection | None = None

    @property
    def user(self) -> str | None:
        return self._user

    def execute(self, command: str) -> tuple[int, list[str]]:
        conn = self._connection()
        logger.debug(f"Executing on '{self._host}': {command}")

        try:
            result = conn.run(command, hide=True, warn=True, in_stream=False)
        except Exception as e:
            raise TransportError(
                f"Could not execute '{command}' on '{self._host}': {e}"
            ) from e

        return result.exited, result.stdout.splitlines()

    def putFiles(
        self,
        local_paths: Sequence[Path],
        remote_dir: PurePosixPath,
        remote_names: Sequence[str],
    ) -> None:
        if len(local_paths) != len(remote_names):
            raise TransportError(
                "The provided 'local_paths' and 'remote_names' must have the same length."
            )

        conn = self._connection()
        for local, name in zip(local_paths, remote_names):
            remote = str(PurePosixPath(remote_dir) / name)
            logger.debug(f"Copying '{local}' -> '{self._host}:{remote}'.")
            try:
                conn.put(str(local), remote=remote)
            except Exception as e:
                raise TransportError(
                    f"Could not copy '{local}' to '{self._host}:{remote}': {e}"
                ) from e

    def getFiles(
        self,
        remote_names: Sequence[str],
        local_dir: Path,
        remote_dir: PurePosixPath,
    ) -> None:
        conn = self._connection()
        for name in remote_names:
            remote = str(PurePosixPath(remote_dir) / name)
            local = Path(local_dir) / name
            logger.debug(f"Copying '{self._host}:{remote}' -> '{local}'.")
            try:
                local.parent.mkdir(parents=True, exist_ok=True)
                conn.get(remote, local=str(local))
            except Exception as e:
                raise TransportError(
                    f"Could not copy '{self._host}:{remote}' to '{local}': {e}"
                ) from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> Connection:
        """Return the open connection, connecting first if necessary."""
        if self._conn is None:
            if self._key_filename is not None:
                self._conn = self._connectWithKey()
            else:
                self._conn = self._connectWithPassword()
            logger.debug(f"Connection to '{self._user}@{self._host}' established.")

        return self._conn

    def _connectWithKey(self) -> Connection:
        conn = Connection(
            self._host,
            user=self._user,
            port=self._port,
            connect_timeout=CFG.ssh.connect_timeout,
            connect_kwargs={"key_filename": str(self._key_filename)},
        )
        try:
            conn.open()
        except AuthenticationException as e:
            raise AuthenticationError(
                f"Could not authenticate to '{self._host}' using key '{self._key_filename}': {e}"
            ) from e
        except Exception as e:
            raise TransportError(f"Could not connect to '{self._host}': {e}") from e

        self._user = conn.user
        return conn

    def _connectWithPassword(self) -> Connection:
        assert self._credentials is not None

        for attempt in range(1, self._max_attempts + 1):
            # ask again only if the previous credentials were rejected
            credentials = self._credentials.get(force=attempt > 1)
            conn = Connection(
                self._host,
                user=credentials.user,
                port=self._port,
                connect_timeout=CFG.ssh.connect_timeout,
                connect_kwargs={"password": credentials.password},
            )
            try:
                conn.open()
            except AuthenticationException:
                conn.close()
                if attempt < self._max_attempts:
                    logger.warning("Incorrect username or password. Please try again.")
                continue
            except Exception as e:
                raise TransportError(
                    f"Could not connect to '{self._host}': {e}"
                ) from e

            self._user = credentials.user
            return conn

        raise AuthenticationError(
            f"Could not authenticate to '{self._host}': maximum number of attempts ({self._max_attempts}) exceeded."
        )
