# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import warnings
from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import Any, Self

from qjob_lib.batch.interface import SchedulerInterface
from qjob_lib.core.common import is_workspace_path, shell_escape
from qjob_lib.core.config import CFG
from qjob_lib.core.error import (
    IncompleteJobWarning,
    QJobError,
    TransportError,
    UnsafeCleanupError,
)
from qjob_lib.core.logger import get_logger
from qjob_lib.properties.states import AggregateState, CanonicalState
from qjob_lib.properties.task import Task
from qjob_lib.transport import Transport

from .workspace import Workspace

logger = get_logger(__name__)


class Job:
    """
    A batch of tasks submitted together, owning one remote workspace.

    The state of a job is never cached: every read of `status` queries
    the scheduler. Tasks missing from the scheduler's response are done.

    A job is meant to be used as a context manager. Leaving the context
    removes the workspace if all tasks are done, and otherwise keeps it
    and issues an `IncompleteJobWarning`.

    Operations on one job must not be run concurrently, since they share
    a single transport session.
    """

    def __init__(
        self,
        scheduler: type[SchedulerInterface],
        transport: Transport,
        directory: PurePosixPath,
        tasks: Sequence[Task],
    ):
        """
        Initialize a job from already submitted tasks.

        Jobs are normally created by `Submitter.submit`.

        Args:
            scheduler (type[SchedulerInterface]): Scheduler the tasks were submitted to.
            transport (Transport): Session used to talk to the cluster.
            directory (PurePosixPath): Path to the job's workspace.
            tasks (Sequence[Task]): The submitted tasks, ordered by index.
        """
        self._scheduler = scheduler
        self._transport = transport
        self._workspace = Workspace(transport, directory)
        self._tasks = tuple(tasks)
        self._cleaned = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.finalize()

    def __repr__(self) -> str:
        return f"Job(scheduler={self._scheduler.envName()}, directory='{self.directory}', tasks={len(self._tasks)})"

    @property
    def directory(self) -> PurePosixPath:
        """Path to the job's workspace on the remote host."""
        return self._workspace.directory

    @property
    def workspace(self) -> Workspace:
        """Remote workspace of the job, for reading and writing additional files."""
        return self._workspace

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def jobIds(self) -> list[str]:
        """Native job ids of all tasks."""
        return [task.job_id for task in self._tasks]

    @property
    def status(self) -> AggregateState:
        """
        Combined state of all tasks, obtained from a fresh scheduler query.

        Raises:
            StatusParseError: If the scheduler reports an unknown state code.
            TransportError: If the scheduler could not be queried.
        """
        return AggregateState.fromStates(self.taskStates().values())

    def taskStates(self) -> dict[str, CanonicalState]:
        """
        Query the state of every task in a single remote call.

        Returns:
            dict[str, CanonicalState]: Canonical state of every task by native job id.

        Raises:
            StatusParseError: If the scheduler reports an unknown state code.
            TransportError: If the scheduler could not be queried.
        """
        if not self._tasks:
            return {}

        command = self._scheduler.translateStatusQuery(
            self.jobIds, self._transport.user
        )
        exit_code, lines = self._transport.execute(command)
        if exit_code != 0:
            # qstat fails for jobs that are no longer known but still reports the others
            logger.debug(f"Status query exited with code {exit_code}.")

        codes = self._scheduler.parseStatusResponse(lines)
        return self._scheduler.resolveStates(self.jobIds, codes)

    def kill(self) -> None:
        """
        Terminate all tasks of the job using a single remote call.

        Killing is best-effort: failures reported by the scheduler are logged
        and the method does not wait for the tasks to terminate.
        """
        if not self._tasks:
            return

        command = self._scheduler.translateKill(self.jobIds)
        exit_code, lines = self._transport.execute(command)
        if exit_code != 0:
            logger.warning(
                f"Scheduler reported an error killing tasks of job '{self.directory}':\n"
                + "\n".join(lines)
            )
        else:
            logger.info(f"Killed {len(self._tasks)} tasks of job '{self.directory}'.")

    def cleanup(self) -> None:
        """
        Remove the job's workspace with all its contents.

        Raises:
            UnsafeCleanupError: If the workspace path does not point into the jobs root.
            TransportError: If the workspace could not be removed.
        """
        if not is_workspace_path(self.directory):
            raise UnsafeCleanupError(
                f"Refusing to remove '{self.directory}': path is not a workspace inside '{CFG.workspace.jobs_dir}'."
            )

        exit_code, lines = self._transport.execute(
            f"rm -rf {shell_escape(str(self.directory))}"
        )
        if exit_code != 0:
            raise TransportError(
                f"Could not remove workspace '{self.directory}':\n" + "\n".join(lines)
            )

        self._cleaned = True
        logger.debug(f"Removed workspace '{self.directory}'.")

    def finalize(self) -> None:
        """
        Remove the workspace if every task is done, otherwise keep it.

        If some task is not done, an `IncompleteJobWarning` naming the
        current status is issued and nothing is removed.
        """
        if not self._tasks or self._cleaned:
            return

        status = self.status
        if status.isDone():
            self.cleanup()
            return

        message = (
            f"Job '{self.directory}' was finalized, but its tasks were not complete "
            f"(status = {status}). Not cleaning up files."
        )
        logger.warning(message)
        warnings.warn(message, IncompleteJobWarning, stacklevel=2)

    def task(self, index: int) -> Task:
        """
        Return the task with the given 1-based index.

        Raises:
            QJobError: If there is no such task.
        """
        if not 1 <= index <= len(self._tasks):
            raise QJobError(
                f"Job '{self.directory}' has no task {index}. Valid indices are 1 to {len(self._tasks)}."
            )

        return self._tasks[index - 1]

    def readDiary(self, index: int) -> str:
        """Return the execution log of the task with the given 1-based index."""
        return self._workspace.readText(self.task(index).diary_file)

    def readOutput(self, index: int) -> list[Any]:
        """
        Return the values produced by the task with the given 1-based index.

        Raises:
            QJobError: If the task produces no outputs or its output file is malformed.
            TransportError: If the output file could not be fetched, e.g. because the task failed.
        """
        task = self.task(index)
        if task.output_file is None:
            raise QJobError(f"Task {index} of job '{self.directory}' produces no outputs.")

        record = self._workspace.readStructured(task.output_file)
        if not isinstance(out := record.get(CFG.artifacts.output_field), list):
            raise QJobError(
                f"Output file '{self._workspace.path(task.output_file)}' does not contain a list of outputs."
            )
        return out

    def readOutputs(self) -> list[list[Any]]:
        """Return the values produced by every task, ordered by task index."""
        return [self.readOutput(task.index) for task in self._tasks]
