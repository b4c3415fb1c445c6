# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass, field
from typing import Any, Self

from qjob_lib.core.config import CFG


@dataclass(frozen=True)
class Task:
    """
    One remote unit of work of a job.

    A task is bound to its native job id once the batch submission response
    has been parsed and is never modified afterwards.

    Attributes:
        index (int): 1-based position of the task inside its job.
        job_id (str): Identifier assigned to the task by the scheduler.
        arguments (list[Any]): Positional arguments the task is invoked with.
        diary_file (str): Name of the task's execution log in the workspace.
        output_file (str | None): Name of the task's output file in the workspace,
            or None if the invoked function produces no outputs.
    """

    index: int
    job_id: str
    arguments: list[Any] = field(default_factory=list)
    diary_file: str = ""
    output_file: str | None = None

    @classmethod
    def fromSubmission(
        cls, index: int, job_id: str, arguments: list[Any], produces_output: bool
    ) -> Self:
        """
        Create a task handle for a submitted task using the standard artifact names.

        Args:
            index (int): 1-based position of the task inside its job.
            job_id (str): Native job id assigned by the scheduler.
            arguments (list[Any]): Positional arguments of the task.
            produces_output (bool): Whether the task writes an output file.

        Returns:
            Task: The task handle.
        """
        return cls(
            index=index,
            job_id=job_id,
            arguments=arguments,
            diary_file=Task.diaryFileName(index),
            output_file=Task.outputFileName(index) if produces_output else None,
        )

    @staticmethod
    def diaryFileName(index: int) -> str:
        return f"{index}{CFG.artifacts.diary_suffix}"

    @staticmethod
    def outputFileName(index: int) -> str:
        return f"{index}{CFG.artifacts.output_suffix}"

    @staticmethod
    def argumentField(index: int) -> str:
        return f"{CFG.artifacts.argument_prefix}{index}"
