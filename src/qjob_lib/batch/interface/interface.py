# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from abc import ABC
from collections.abc import Sequence

from qjob_lib.core.common import normalize_directives
from qjob_lib.core.error import StatusParseError
from qjob_lib.core.logger import get_logger
from qjob_lib.properties.states import CanonicalState

logger = get_logger(__name__)


class SchedulerInterface(ABC):
    """
    Abstract base class for scheduler integrations.

    Concrete scheduler classes translate qjob operations into the commands of
    the scheduler and parse the scheduler's responses. They never execute
    anything themselves: all commands are run by the caller over a transport.

    All functions should raise a QJobError subclass when encountering an error.
    """

    # mapping of native state codes to canonical states
    STATE_CODES: dict[str, CanonicalState] = {}

    @classmethod
    def envName(cls) -> str:
        """
        Return the name of the scheduler.

        Returns:
            str: The scheduler name.
        """
        raise NotImplementedError(
            "envName method is not implemented for this scheduler implementation"
        )

    @classmethod
    def translateDirectives(cls, directives: Sequence[str]) -> str:
        """
        Translate scheduler directives into the directive block of a job script.

        Args:
            directives (Sequence[str]): Opaque directive strings.

        Returns:
            str: Directive lines, each terminated by a newline. Empty if there are no directives.
        """
        raise NotImplementedError(
            "translateDirectives method is not implemented for this scheduler implementation"
        )

    @classmethod
    def translateSubmit(
        cls,
        job_name: str,
        command: str,
        directives: str | Sequence[str] | None = None,
    ) -> str:
        """
        Construct a shell command submitting a single task.

        The command pipes a job script consisting of the directive block
        and `command` into the scheduler's submission program.

        Args:
            job_name (str): Name of the task in the scheduler.
            command (str): Shell command executed by the task.
            directives (str | Sequence[str] | None): Scheduler directives.

        Returns:
            str: A single-line shell command.
        """
        raise NotImplementedError(
            "translateSubmit method is not implemented for this scheduler implementation"
        )

    @classmethod
    def parseSubmitResponse(cls, lines: list[str], n_tasks: int) -> list[str]:
        """
        Extract native job ids from the output of a batch submission.

        Args:
            lines (list[str]): Output lines of the submission script.
            n_tasks (int): Number of tasks submitted by the script.

        Returns:
            list[str]: Native job ids, one per task in submission order.

        Raises:
            SubmissionError: If the output does not describe `n_tasks` successful submissions.
        """
        raise NotImplementedError(
            "parseSubmitResponse method is not implemented for this scheduler implementation"
        )

    @classmethod
    def translateStatusQuery(cls, job_ids: Sequence[str], user: str | None) -> str:
        """
        Construct a shell command querying the state of the given jobs.

        Args:
            job_ids (Sequence[str]): Native job ids to query.
            user (str | None): Owner of the jobs on the cluster.

        Returns:
            str: The query command.
        """
        raise NotImplementedError(
            "translateStatusQuery method is not implemented for this scheduler implementation"
        )

    @classmethod
    def parseStatusResponse(cls, lines: list[str]) -> dict[str, str]:
        """
        Parse the output of a status query.

        Jobs that are no longer known to the scheduler are simply missing
        from the result. An empty output produces an empty dictionary.

        Args:
            lines (list[str]): Output lines of the status query.

        Returns:
            dict[str, str]: Mapping of native job ids to native state codes.

        Raises:
            StatusParseError: If the output cannot be parsed.
        """
        raise NotImplementedError(
            "parseStatusResponse method is not implemented for this scheduler implementation"
        )

    @classmethod
    def translateKill(cls, job_ids: Sequence[str]) -> str:
        """
        Construct a shell command terminating the given jobs.

        Args:
            job_ids (Sequence[str]): Native job ids to terminate.

        Returns:
            str: The kill command.
        """
        raise NotImplementedError(
            "translateKill method is not implemented for this scheduler implementation"
        )

    @classmethod
    def stateFromCode(cls, code: str) -> CanonicalState:
        """
        Convert a native state code into a canonical state.

        Args:
            code (str): State code reported by the scheduler.

        Returns:
            CanonicalState: The corresponding canonical state.

        Raises:
            StatusParseError: If the code is not part of the scheduler's state table.
        """
        try:
            return cls.STATE_CODES[code.strip()]
        except KeyError as e:
            raise StatusParseError(
                f"Unknown {cls.envName()} state code '{code}'."
            ) from e

    @classmethod
    def resolveStates(
        cls, job_ids: Sequence[str], codes: dict[str, str]
    ) -> dict[str, CanonicalState]:
        """
        Resolve the canonical state of every job from the parsed status response.

        Jobs missing from `codes` are no longer known to the scheduler and are `DONE`.

        Args:
            job_ids (Sequence[str]): Native job ids of interest.
            codes (dict[str, str]): Mapping of job ids to native state codes.

        Returns:
            dict[str, CanonicalState]: Canonical state of every job in `job_ids`.
        """
        states = {}
        for job_id in job_ids:
            if (code := codes.get(job_id)) is None:
                logger.debug(f"Job '{job_id}' is not known to the scheduler.")
                states[job_id] = CanonicalState.DONE
            else:
                states[job_id] = cls.stateFromCode(code)

        return states

    @staticmethod
    def _directives(directives: str | Sequence[str] | None) -> list[str]:
        return normalize_directives(directives)
