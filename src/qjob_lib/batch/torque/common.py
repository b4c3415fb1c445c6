# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import xml.etree.ElementTree as ET

from qjob_lib.core.error import StatusParseError
from qjob_lib.core.logger import get_logger

logger = get_logger(__name__)


def parse_qstat_xml(lines: list[str]) -> dict[str, str]:
    """
    Parse the XML output of Torque's `qstat -x` into a mapping of job ids to state codes.

    Each non-empty line of the output is a standalone XML document of the form
    `<Data><Job><Job_Id>...</Job_Id>...<job_state>...</job_state>...</Job></Data>`
    holding one or more job records. Lines that are not XML (e.g. warnings
    printed by qstat) are ignored.

    Args:
        lines (list[str]): Output lines of `qstat -x`.

    Returns:
        dict[str, str]: Mapping of job ids to one-letter state codes.

    Raises:
        StatusParseError: If an XML document is malformed or a job record is incomplete.
    """
    states: dict[str, str] = {}

    for line in lines:
        line = line.strip()
        if not line:
            continue

        if not line.startswith("<"):
            logger.debug(f"Ignoring non-XML line in qstat output: '{line}'.")
            continue

        try:
            root = ET.fromstring(line)
        except ET.ParseError as e:
            raise StatusParseError(
                f"Invalid qstat XML output: {e}.\n{line}"
            ) from e

        for job in root.iter("Job"):
            job_id = (job.findtext("Job_Id") or "").strip()
            state = (job.findtext("job_state") or "").strip()
            if not job_id or not state:
                raise StatusParseError(
                    f"Could not extract job id and job state from qstat record:\n{ET.tostring(job, encoding='unicode')}"
                )
            states[job_id] = state

    logger.debug(f"Detected {len(states)} active Torque jobs.")
    return states
