# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Sequence
from pathlib import Path, PurePosixPath
from typing import Any

from qjob_lib.batch.interface import SchedulerInterface
from qjob_lib.core.common import (
    allocate_workspace_path,
    normalize_arguments,
    normalize_directives,
    shell_escape,
)
from qjob_lib.core.config import CFG
from qjob_lib.core.error import QJobError, SubmissionError, TransportError
from qjob_lib.core.logger import get_logger
from qjob_lib.job import Job, Workspace
from qjob_lib.properties.target import Target
from qjob_lib.properties.task import Task
from qjob_lib.transport import Transport

from . import remote

logger = get_logger(__name__)


class Submitter:
    """
    Class to submit a batch of tasks to a cluster scheduler.

    Responsibilities:
        - Allocate a unique workspace on the cluster.
        - Copy the invoked script (and its local dependencies) into the workspace.
        - Write the arguments of all tasks into a single file.
        - Submit all tasks using a single script executed in one remote call.
        - Parse the submission output into task handles.

    Submission is all-or-nothing: either a Job with one task per element
    of the task list is returned, or an error is raised.
    """

    def __init__(
        self,
        scheduler: type[SchedulerInterface],
        transport: Transport,
        target: Target,
        tasks: Sequence[Any],
        directives: str | Sequence[str] | None = None,
        copy_dependencies: bool = True,
        working_dir: str | None = None,
    ):
        """
        Initialize a Submitter instance.

        Args:
            scheduler (type[SchedulerInterface]): The scheduler running on the cluster.
            transport (Transport): Session used to talk to the cluster.
            target (Target): The function invoked by every task.
            tasks (Sequence[Any]): One element per task. Lists and tuples are the positional
                arguments of the task, any other value is its only argument.
            directives (str | Sequence[str] | None): Scheduler directives applied to every task.
            copy_dependencies (bool): Copy local modules imported by the target script as well.
                If False, only the script itself is copied.
            working_dir (str | None): Directory on the cluster in which the jobs root is created.
                Relative paths are relative to the home directory of the remote user.

        Raises:
            QJobError: If there are no tasks to submit.
        """
        self._scheduler = scheduler
        self._transport = transport
        self._target = target
        self._arguments = normalize_arguments(tasks)
        self._directives = normalize_directives(directives)
        self._copy_dependencies = copy_dependencies
        self._working_dir = working_dir

        if not self._arguments:
            raise QJobError("No tasks to submit.")

    def submit(self) -> Job:
        """
        Submit all tasks to the scheduler.

        Returns:
            Job: The submitted job.

        Raises:
            AuthenticationError: If the cluster rejects the credentials.
            TransportError: If a remote command or a file transfer fails.
            SubmissionError: If the scheduler did not accept all tasks.
        """
        workspace = self._createWorkspace()
        self._stageTarget(workspace)

        workspace.writeStructured(
            CFG.artifacts.arguments,
            {
                Task.argumentField(i): args
                for i, args in enumerate(self._arguments, start=1)
            },
        )

        logger.info(
            f"Submitting {len(self._arguments)} tasks to {self._scheduler.envName()}..."
        )
        workspace.writeText(CFG.artifacts.command_script, self._buildScript(workspace.directory))
        _, lines = self._transport.execute(
            f"{CFG.runtime.shell} {shell_escape(str(workspace.path(CFG.artifacts.command_script)))}"
        )

        job_ids = self._scheduler.parseSubmitResponse(lines, len(self._arguments))
        if len(set(job_ids)) != len(job_ids):
            raise SubmissionError(
                "An error occurred submitting tasks: the scheduler assigned duplicate job ids.",
                lines,
            )

        tasks = [
            Task.fromSubmission(i, job_id, args, self._target.producesOutput())
            for i, (job_id, args) in enumerate(zip(job_ids, self._arguments), start=1)
        ]
        logger.info(f"Submitted job '{workspace.directory}' with {len(tasks)} tasks.")

        return Job(self._scheduler, self._transport, workspace.directory, tasks)

    def _createWorkspace(self) -> Workspace:
        """
        Create a new uniquely named workspace directory on the cluster.
        """
        directory = allocate_workspace_path(self._working_dir)
        logger.debug(f"Creating workspace '{directory}'.")
        self._mkdir(directory)

        return Workspace(self._transport, directory)

    def _stageTarget(self, workspace: Workspace) -> None:
        """
        Copy the target script and, optionally, its local dependencies into the workspace,
        together with the module loading the arguments of the tasks.
        """
        if self._copy_dependencies:
            logger.info("Copying function and dependencies to server...")
            paths = self._target.dependencies()
        else:
            logger.info("Copying function to server...")
            paths = [self._target.script]

        names = self._target.remoteNames(paths)

        paths = [*paths, Path(remote.__file__)]
        names = [*names, CFG.artifacts.remote_module]

        # local packages keep their directory structure
        for subdir in sorted({PurePosixPath(n).parent for n in names} - {PurePosixPath(".")}):
            self._mkdir(workspace.directory / subdir)

        self._transport.putFiles(paths, workspace.directory, names)

    def _buildScript(self, directory: PurePosixPath) -> str:
        """
        Build the script submitting all tasks, one submission command per line.
        """
        commands = []
        for i in range(1, len(self._arguments) + 1):
            code = self._target.invocation(i, directory)
            diary = directory / Task.diaryFileName(i)
            # tasks start in the home directory, like relative workspace paths
            command = (
                f"cd && {CFG.runtime.python} -c {shell_escape(code)} "
                f"> {shell_escape(str(diary))} 2>&1"
            )
            commands.append(
                self._scheduler.translateSubmit(
                    f"{self._target.function}_{i}", command, self._directives
                )
            )

        return "\n".join(commands) + "\n"

    def _mkdir(self, directory: PurePosixPath) -> None:
        exit_code, lines = self._transport.execute(
            f"mkdir -p {shell_escape(str(directory))}"
        )
        if exit_code != 0:
            raise TransportError(
                f"Could not create directory '{directory}' on the cluster:\n"
                + "\n".join(lines)
            )
