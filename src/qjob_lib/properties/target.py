# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass
from modulefinder import ModuleFinder
from pathlib import Path, PurePosixPath
from typing import Self

from qjob_lib.core.config import CFG
from qjob_lib.core.error import QJobError
from qjob_lib.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Target:
    """
    Python function invoked by every task of a job.

    Attributes:
        script (Path): Local path to the Python file defining the function.
        function (str): Name of the function inside the script.
        num_outputs (int): Number of values the function returns.
            0 means the function produces no outputs, 1 means its return value
            is a single output, and larger numbers mean the return value is
            unpacked into that many outputs.
    """

    script: Path
    function: str
    num_outputs: int = 1

    def __post_init__(self):
        if self.num_outputs < 0:
            raise QJobError(
                f"Number of outputs must be non-negative, not '{self.num_outputs}'."
            )
        if not self.function.isidentifier():
            raise QJobError(f"'{self.function}' is not a valid function name.")
        if not self.module.isidentifier():
            raise QJobError(
                f"Script '{self.script}' cannot be imported: '{self.module}' is not a valid module name."
            )
        if self.module == PurePosixPath(CFG.artifacts.remote_module).stem:
            raise QJobError(
                f"Script '{self.script}' cannot be imported: '{self.module}' is a reserved module name."
            )

    @classmethod
    def fromStr(cls, spec: str, num_outputs: int = 1) -> Self:
        """
        Create a target from a string of the form 'path/to/script.py:function'.

        Args:
            spec (str): The target specification.
            num_outputs (int): Number of values the function returns.

        Returns:
            Target: The parsed target.

        Raises:
            QJobError: If the specification is malformed or the script does not exist.
        """
        script, sep, function = spec.rpartition(":")
        if not sep or not script or not function:
            raise QJobError(
                f"Could not parse target '{spec}'. Expected 'path/to/script.py:function'."
            )

        path = Path(script)
        if not path.is_file():
            raise QJobError(f"Script '{script}' does not exist or is not a file.")

        return cls(path, function, num_outputs)

    @property
    def module(self) -> str:
        """Name under which the script is imported on the remote host."""
        return self.script.stem

    def producesOutput(self) -> bool:
        return self.num_outputs > 0

    def dependencies(self) -> list[Path]:
        """
        Collect the script and the local modules it imports.

        A module is local if its file lives inside the directory of the script.
        Modules from the standard library and installed packages are expected
        to be available on the remote host.

        Returns:
            list[Path]: The script followed by its local dependencies, sorted.

        Raises:
            QJobError: If the script cannot be analyzed.
        """
        root = self.script.resolve().parent
        finder = ModuleFinder(path=[str(root)])
        try:
            finder.run_script(str(self.script))
        except (OSError, SyntaxError) as e:
            raise QJobError(
                f"Could not collect dependencies of '{self.script}': {e}."
            ) from e

        deps = set()
        for name, module in finder.modules.items():
            if name == "__main__" or not module.__file__:
                continue
            path = Path(module.__file__).resolve()
            if path.is_file() and path.is_relative_to(root):
                deps.add(path)

        logger.debug(f"Detected local dependencies of '{self.script}': {deps}.")
        return [self.script.resolve()] + sorted(deps - {self.script.resolve()})

    def remoteNames(self, paths: list[Path]) -> list[str]:
        """Return the names of the files relative to the directory of the script."""
        root = self.script.resolve().parent
        return [
            PurePosixPath(*path.resolve().relative_to(root).parts).as_posix()
            for path in paths
        ]

    def invocation(self, index: int, workspace: PurePosixPath) -> str:
        """
        Build the Python code that runs the task with the given index on a compute node.

        The code loads only the arguments of this task from the arguments file
        using the helper module staged in the workspace (other tasks' arguments
        are never constructed), calls the function and, if the function produces
        outputs, writes them as a list into the task's output file. Paths are relative to the home
        directory of the remote user unless the workspace path is absolute.

        Args:
            index (int): 1-based index of the task.
            workspace (PurePosixPath): Path to the job's workspace.

        Returns:
            str: A single line of Python code.
        """
        arguments = str(workspace / CFG.artifacts.arguments)
        field = f"{CFG.artifacts.argument_prefix}{index}"
        statements = [
            "import sys, yaml",
            f"sys.path.insert(0, {str(workspace)!r})",
            f"from {self.module} import {self.function}",
            f"from {PurePosixPath(CFG.artifacts.remote_module).stem} import load_arguments",
            f"args = load_arguments({arguments!r}, {field!r})",
        ]

        if not self.producesOutput():
            statements.append(f"{self.function}(*args)")
        else:
            output = str(workspace / f"{index}{CFG.artifacts.output_suffix}")
            if self.num_outputs == 1:
                statements.append(f"out = [{self.function}(*args)]")
            else:
                statements.append(f"out = list({self.function}(*args))")
                statements.append(
                    f"assert len(out) == {self.num_outputs}, 'expected {self.num_outputs} outputs'"
                )
            statements.append(
                f"yaml.safe_dump({{{CFG.artifacts.output_field!r}: out}}, open({output!r}, 'w'))"
            )
            statements.append("sys.exit(0)")

        return "; ".join(statements)
