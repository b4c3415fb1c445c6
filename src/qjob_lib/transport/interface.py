# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path, PurePosixPath
from typing import Self


class Transport(ABC):
    """
    Abstract base class for sessions executing commands and moving files on a remote host.

    A transport session is not safe for concurrent use: operations
    using the same session must be serialized by the caller.

    Implementations must preserve the ordering of output lines and their raw text.
    All methods should raise a QJobError subclass when encountering an error.
    """

    @property
    @abstractmethod
    def user(self) -> str | None:
        """
        Return the name of the remote user, if known.

        Returns:
            str | None: The remote username.
        """
        pass

    @abstractmethod
    def execute(self, command: str) -> tuple[int, list[str]]:
        """
        Execute a shell command on the remote host.

        A non-zero exit status of the command is not an error of the transport.

        Args:
            command (str): The command to execute.

        Returns:
            tuple[int, list[str]]: Exit status of the command and the lines of its standard output.

        Raises:
            AuthenticationError: If the remote host rejects the credentials.
            TransportError: If the command could not be executed.
        """
        pass

    @abstractmethod
    def putFiles(
        self,
        local_paths: Sequence[Path],
        remote_dir: PurePosixPath,
        remote_names: Sequence[str],
    ) -> None:
        """
        Copy local files into a directory on the remote host.

        Args:
            local_paths (Sequence[Path]): Files to copy.
            remote_dir (PurePosixPath): Destination directory on the remote host.
            remote_names (Sequence[str]): Names of the copied files inside `remote_dir`.

        Raises:
            TransportError: If any of the files could not be copied.
        """
        pass

    @abstractmethod
    def getFiles(
        self,
        remote_names: Sequence[str],
        local_dir: Path,
        remote_dir: PurePosixPath,
    ) -> None:
        """
        Copy files from a directory on the remote host into a local directory.

        Args:
            remote_names (Sequence[str]): Names of the files inside `remote_dir`.
            local_dir (Path): Local destination directory. Files keep their names.
            remote_dir (PurePosixPath): Source directory on the remote host.

        Raises:
            TransportError: If any of the files could not be copied.
        """
        pass

    def close(self) -> None:
        """Close the session."""
        pass

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
