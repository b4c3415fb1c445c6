# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import shutil
from pathlib import Path, PurePosixPath

import pytest

from qjob_lib.core.error import TransportError
from qjob_lib.transport import Transport


class LocalTransport(Transport):
    """
    Transport treating a local directory as the home directory of the remote user.

    Commands are not executed: they are recorded and answered with queued
    responses, or with `(0, [])` if no response is queued.
    """

    def __init__(self, root: Path, user: str | None = "alice"):
        self.root = root
        self.commands: list[str] = []
        self.responses: list[tuple[int, list[str]]] = []
        self._user = user

    @property
    def user(self) -> str | None:
        return self._user

    def execute(self, command: str) -> tuple[int, list[str]]:
        self.commands.append(command)
        if self.responses:
            return self.responses.pop(0)
        return 0, []

    def putFiles(self, local_paths, remote_dir: PurePosixPath, remote_names) -> None:
        if len(local_paths) != len(remote_names):
            raise TransportError("length mismatch")
        for local, name in zip(local_paths, remote_names):
            target = self.root / remote_dir / name
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(local, target)

    def getFiles(self, remote_names, local_dir: Path, remote_dir: PurePosixPath) -> None:
        for name in remote_names:
            source = self.root / remote_dir / name
            if not source.is_file():
                raise TransportError(f"Could not copy '{source}'.")
            shutil.copy(source, Path(local_dir) / name)


@pytest.fixture
def transport(tmp_path):
    root = tmp_path / "remote"
    root.mkdir()
    return LocalTransport(root)
