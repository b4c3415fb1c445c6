# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import re
from collections.abc import Sequence

from qjob_lib.batch.interface import SchedulerInterface, SchedulerMeta, scheduler
from qjob_lib.core.common import shell_escape
from qjob_lib.core.error import StatusParseError, SubmissionError
from qjob_lib.core.logger import get_logger
from qjob_lib.properties.states import CanonicalState

logger = get_logger(__name__)


@scheduler
class SGE(SchedulerInterface, metaclass=SchedulerMeta):
    """
    Implementation of SchedulerInterface for Sun Grid Engine and its descendants.
    """

    # SGE distinguishes more states than qjob; suspended and
    # threshold-reached jobs are reported as held
    STATE_CODES = {
        "r": CanonicalState.RUNNING,
        "R": CanonicalState.RUNNING,
        "dr": CanonicalState.RUNNING,
        "qw": CanonicalState.QUEUED,
        "q": CanonicalState.QUEUED,
        "t": CanonicalState.TRANSFERRING,
        "s": CanonicalState.HELD,
        "S": CanonicalState.HELD,
        "T": CanonicalState.HELD,
        "h": CanonicalState.HELD,
        "hqw": CanonicalState.HELD,
        "e": CanonicalState.ERROR,
        "E": CanonicalState.ERROR,
        "Eqw": CanonicalState.ERROR,
    }

    SUBMIT_PATTERN = re.compile(r'Your job (\d+) \(".*"\) has been submitted')
    JOB_NUMBER_PATTERN = re.compile(r"<JB_job_number>\s*(\w+)\s*</JB_job_number>")
    STATE_PATTERN = re.compile(r"<state>\s*(\w+)\s*</state>")

    @classmethod
    def envName(cls) -> str:
        return "SGE"

    @classmethod
    def translateDirectives(cls, directives: Sequence[str]) -> str:
        return "".join(f"#$ {d}\n" for d in directives)

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
            f"| qsub -j y -o /dev/null -N {shell_escape(job_name)} 2>&1"
        )

    @classmethod
    def parseSubmitResponse(cls, lines: list[str], n_tasks: int) -> list[str]:
        if len(lines) != n_tasks:
            raise SubmissionError(
                f"An error occurred submitting tasks: expected {n_tasks} confirmations, got {len(lines)} lines of output.",
                lines,
            )

        job_ids = []
        for line in lines:
            if not (match := cls.SUBMIT_PATTERN.search(line)):
                raise SubmissionError("An error occurred submitting tasks:", lines)
            job_ids.append(match.group(1))

        logger.debug(f"Submitted SGE jobs: {job_ids}.")
        return job_ids

    @classmethod
    def translateStatusQuery(cls, job_ids: Sequence[str], user: str | None) -> str:
        # SGE cannot report the state of selected jobs, list all jobs of the user instead
        if user:
            return f"qstat -u {shell_escape(user)} -xml"
        return "qstat -xml"

    @classmethod
    def parseStatusResponse(cls, lines: list[str]) -> dict[str, str]:
        text = "\n".join(lines)
        job_ids = cls.JOB_NUMBER_PATTERN.findall(text)
        states = cls.STATE_PATTERN.findall(text)

        if len(job_ids) != len(states):
            raise StatusParseError(
                f"Invalid qstat XML output: found {len(job_ids)} job numbers but {len(states)} states.\n{text}"
            )

        logger.debug(f"Detected {len(job_ids)} active SGE jobs.")
        return dict(zip(job_ids, states))

    @classmethod
    def translateKill(cls, job_ids: Sequence[str]) -> str:
        return f"qdel {' '.join(job_ids)}"
