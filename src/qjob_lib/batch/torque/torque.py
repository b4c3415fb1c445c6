# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from collections.abc import Sequence

from qjob_lib.batch.interface import SchedulerInterface, SchedulerMeta, scheduler
from qjob_lib.core.common import shell_escape
from qjob_lib.core.error import SubmissionError
from qjob_lib.core.logger import get_logger
from qjob_lib.properties.states import CanonicalState

from .common import parse_qstat_xml

logger = get_logger(__name__)


@scheduler
class Torque(SchedulerInterface, metaclass=SchedulerMeta):
    """
    Implementation of SchedulerInterface for Torque and PBS-family schedulers.
    """

    STATE_CODES = {
        "E": CanonicalState.DONE,
        "H": CanonicalState.HELD,
        "Q": CanonicalState.QUEUED,
        "R": CanonicalState.RUNNING,
        "T": CanonicalState.TRANSFERRING,
        "W": CanonicalState.WAITING,
    }

    @classmethod
    def envName(cls) -> str:
        return "Torque"

    @classmethod
    def translateDirectives(cls, directives: Sequence[str]) -> str:
        return "".join(f"#PBS -l {d}\n" for d in directives)

    @classmethod
    def translateSubmit(
        cls,
        job_name: str,
        command: str,
        directives: str | Sequence[str] | None = None,
    ) -> str:
        script = cls.translateDirectives(cls._directives(directives)) + command
        return (
            f"printf '%s\\n' {shell_escape(script)} "
            f"| qsub -j oe -o /dev/null -N {shell_escape(job_name)} 2>&1"
        )

    @classmethod
    def parseSubmitResponse(cls, lines: list[str], n_tasks: int) -> list[str]:
        if len(lines) != n_tasks:
            raise SubmissionError(
                f"An error occurred submitting tasks: expected {n_tasks} job ids, got {len(lines)} lines of output.",
                lines,
            )

        job_ids = []
        for line in lines:
            job_id = line.strip()
            # qsub prints a bare job id on success and a message on failure
            if not job_id or any(c.isspace() for c in job_id):
                raise SubmissionError("An error occurred submitting tasks:", lines)
            job_ids.append(job_id)

        logger.debug(f"Submitted Torque jobs: {job_ids}.")
        return job_ids

    @classmethod
    def translateStatusQuery(cls, job_ids: Sequence[str], user: str | None) -> str:
        return f"qstat -x {' '.join(job_ids)}"

    @classmethod
    def parseStatusResponse(cls, lines: list[str]) -> dict[str, str]:
        return parse_qstat_xml(lines)

    @classmethod
    def translateKill(cls, job_ids: Sequence[str]) -> str:
        return f"qdel {' '.join(job_ids)}"
