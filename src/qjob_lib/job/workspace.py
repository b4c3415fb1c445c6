# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Typed access to small files inside a remote job workspace.

Every operation stages its data in a local temporary directory which is
removed again regardless of whether the transfer succeeded.
"""

import tempfile
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from qjob_lib.core.common import load_yaml_flat_dumper, load_yaml_loader
from qjob_lib.core.error import QJobError
from qjob_lib.core.logger import get_logger
from qjob_lib.transport import Transport

logger = get_logger(__name__)


class Workspace:
    """
    Remote directory exclusively owned by one job.

    Attributes:
        directory (PurePosixPath): Path to the workspace on the remote host.
    """

    def __init__(self, transport: Transport, directory: PurePosixPath):
        self._transport = transport
        self.directory = PurePosixPath(directory)

    def path(self, name: str) -> PurePosixPath:
        """Return the remote path of a file inside the workspace."""
        return self.directory / name

    def writeText(self, name: str, content: str) -> None:
        """
        Write text into a file in the workspace, overwriting it if it exists.

        Raises:
            TransportError: If the file could not be transferred.
        """
        with tempfile.TemporaryDirectory() as tmp:
            local = Path(tmp) / Path(name).name
            local.write_text(content)
            self._transport.putFiles([local], self.directory, [name])

        logger.debug(f"Written '{self.path(name)}'.")

    def writeStructured(self, name: str, record: dict[str, Any]) -> None:
        """
        Write a record into a YAML file in the workspace.

        Every top-level field is self-contained: no anchors or aliases are emitted.

        Raises:
            TransportError: If the file could not be transferred.
        """
        content = yaml.dump(
            record, Dumper=load_yaml_flat_dumper(), default_flow_style=False, sort_keys=False
        )
        self.writeText(name, content)

    def readText(self, name: str) -> str:
        """
        Read the contents of a file in the workspace.

        Raises:
            TransportError: If the file could not be transferred.
        """
        with tempfile.TemporaryDirectory() as tmp:
            self._transport.getFiles([name], Path(tmp), self.directory)
            return (Path(tmp) / name).read_text()

    def readStructured(self, name: str) -> dict[str, Any]:
        """
        Read a record from a YAML file in the workspace.

        Raises:
            TransportError: If the file could not be transferred.
            QJobError: If the file does not contain a YAML mapping.
        """
        content = self.readText(name)
        try:
            record = yaml.load(content, Loader=load_yaml_loader())
        except yaml.YAMLError as e:
            raise QJobError(f"Could not parse '{self.path(name)}': {e}") from e

        if record is None:
            return {}
        if not isinstance(record, dict):
            raise QJobError(
                f"File '{self.path(name)}' does not contain a mapping."
            )
        return record
