# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import warnings
from pathlib import PurePosixPath
from unittest.mock import patch

import pytest

from qjob_lib.batch.sge import SGE
from qjob_lib.batch.torque import Torque
from qjob_lib.core.error import (
    IncompleteJobWarning,
    QJobError,
    StatusParseError,
    TransportError,
    UnsafeCleanupError,
)
from qjob_lib.job import Job
from qjob_lib.properties.states import CanonicalState
from qjob_lib.properties.task import Task


def _qstat(*records: tuple[str, str]) -> str:
    jobs = "".join(
        f"<Job><Job_Id>{job_id}</Job_Id><job_state>{state}</job_state></Job>"
        for job_id, state in records
    )
    return f"<Data>{jobs}</Data>"


def _job(transport, n_tasks=2, directory="jobs/42", output=True):
    tasks = [
        Task.fromSubmission(i, f"{100 + i}.head", [i], produces_output=output)
        for i in range(1, n_tasks + 1)
    ]
    return Job(Torque, transport, PurePosixPath(directory), tasks)


def test_job_ids_and_repr(transport):
    job = _job(transport)

    assert job.jobIds == ["101.head", "102.head"]
    assert job.directory == PurePosixPath("jobs/42")
    assert "Torque" in repr(job)
    assert "jobs/42" in repr(job)


def test_status_absent_task_is_done(transport):
    job = _job(transport)
    transport.responses.append((0, [_qstat(("101.head", "Q"))]))

    status = job.status

    assert status.states == frozenset({CanonicalState.QUEUED, CanonicalState.DONE})
    assert str(status) == "done/queued"
    assert transport.commands == ["qstat -x 101.head 102.head"]


def test_status_is_never_cached(transport):
    job = _job(transport)
    transport.responses.append((0, [_qstat(("101.head", "R"), ("102.head", "R"))]))
    transport.responses.append((0, []))

    assert str(job.status) == "running"
    assert str(job.status) == "done"
    assert len(transport.commands) == 2


def test_status_ignores_nonzero_exit_of_query(transport):
    job = _job(transport)
    transport.responses.append((153, [_qstat(("102.head", "H"))]))

    assert job.taskStates() == {
        "101.head": CanonicalState.DONE,
        "102.head": CanonicalState.HELD,
    }


def test_status_unknown_code(transport):
    job = _job(transport)
    transport.responses.append((0, [_qstat(("101.head", "C"))]))

    with pytest.raises(StatusParseError):
        job.status


def test_status_sge_queries_by_user(transport):
    tasks = [
        Task.fromSubmission(1, "501", [1], produces_output=True),
        Task.fromSubmission(2, "502", [2], produces_output=True),
    ]
    job = Job(SGE, transport, PurePosixPath("jobs/42"), tasks)
    transport.responses.append(
        (0, ["<JB_job_number>501</JB_job_number>", "<state>qw</state>"])
    )

    status = job.status

    assert transport.commands == ["qstat -u 'alice' -xml"]
    assert str(status) == "done/queued"


def test_empty_job(transport):
    job = Job(Torque, transport, PurePosixPath("jobs/1"), [])

    assert job.status.isDone()
    job.kill()
    job.finalize()
    assert transport.commands == []


def test_kill_single_command(transport):
    job = _job(transport, n_tasks=3)

    job.kill()

    assert transport.commands == ["qdel 101.head 102.head 103.head"]


def test_kill_is_best_effort(transport):
    job = _job(transport)
    transport.responses.append((153, ["qdel: Unknown Job Id 101.head"]))

    with patch("qjob_lib.job.job.logger.warning") as mock_warning:
        job.kill()

    mock_warning.assert_called_once()
    assert "Unknown Job Id" in mock_warning.call_args[0][0]


def test_cleanup_removes_workspace(transport):
    job = _job(transport, directory="/home/alice/jobs/42")

    job.cleanup()

    assert transport.commands == ["rm -rf '/home/alice/jobs/42'"]


@pytest.mark.parametrize(
    "directory", ["/home/alice", "jobs", "jobs/../x", "tmp/42", "/", "jobs/abc"]
)
def test_cleanup_refuses_unsafe_path(transport, directory):
    job = _job(transport, directory=directory)

    with pytest.raises(UnsafeCleanupError):
        job.cleanup()

    assert transport.commands == []


def test_cleanup_failure(transport):
    job = _job(transport)
    transport.responses.append((1, ["rm: cannot remove 'jobs/42': Permission denied"]))

    with pytest.raises(TransportError, match="Permission denied"):
        job.cleanup()


def test_finalize_done_job_cleans_once(transport):
    job = _job(transport)

    job.finalize()
    job.finalize()

    assert transport.commands == ["qstat -x 101.head 102.head", "rm -rf 'jobs/42'"]


def test_finalize_running_job_keeps_workspace(transport):
    job = _job(transport)
    transport.responses.append((0, [_qstat(("101.head", "R"))]))

    with pytest.warns(IncompleteJobWarning, match="done/running"):
        job.finalize()

    assert not any(c.startswith("rm") for c in transport.commands)


def test_context_manager_finalizes(transport):
    with _job(transport) as job:
        assert transport.commands == []

    assert transport.commands[-1] == "rm -rf 'jobs/42'"
    assert job.jobIds == ["101.head", "102.head"]


def test_context_manager_finalizes_on_exception(transport):
    transport.responses.append((0, [_qstat(("101.head", "Q"))]))

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        with pytest.raises(RuntimeError):
            with _job(transport):
                raise RuntimeError("caller failed")

    assert [w.category for w in caught] == [IncompleteJobWarning]
    assert not any(c.startswith("rm") for c in transport.commands)


def test_task_index_is_one_based(transport):
    job = _job(transport, n_tasks=2)

    assert job.task(1).job_id == "101.head"
    assert job.task(2).job_id == "102.head"
    for index in (0, 3, -1):
        with pytest.raises(QJobError, match="has no task"):
            job.task(index)


def test_read_diary(transport):
    job = _job(transport)
    (transport.root / "jobs/42").mkdir(parents=True)
    (transport.root / "jobs/42/2_diary.txt").write_text("ZeroDivisionError\n")

    assert job.readDiary(2) == "ZeroDivisionError\n"


def test_read_outputs(transport):
    job = _job(transport)
    job.workspace.writeStructured("1_output.yaml", {"out": [2.5]})
    job.workspace.writeStructured("2_output.yaml", {"out": [[1, 2], "x"]})

    assert job.readOutput(1) == [2.5]
    assert job.readOutputs() == [[2.5], [[1, 2], "x"]]


def test_read_output_of_failed_task(transport):
    job = _job(transport)

    with pytest.raises(TransportError):
        job.readOutput(1)


def test_read_output_malformed(transport):
    job = _job(transport)
    job.workspace.writeStructured("1_output.yaml", {"out": 3})

    with pytest.raises(QJobError, match="does not contain a list of outputs"):
        job.readOutput(1)


def test_read_output_without_outputs(transport):
    job = _job(transport, output=False)

    with pytest.raises(QJobError, match="produces no outputs"):
        job.readOutput(1)
