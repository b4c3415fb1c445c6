# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


from pathlib import Path, PurePosixPath
from unittest.mock import patch

import pytest
import yaml

from qjob_lib.batch.sge import SGE
from qjob_lib.batch.torque import Torque
from qjob_lib.core.error import QJobError, SubmissionError, TransportError
from qjob_lib.job import Job
from qjob_lib.properties.target import Target
from qjob_lib.submit import Submitter
from qjob_lib.submit import remote as remote_helper

WORKSPACE = PurePosixPath("jobs/77")


@pytest.fixture
def target(tmp_path):
    script = tmp_path / "local" / "simulate.py"
    script.parent.mkdir()
    script.write_text("def run(x, y=0):\n    return x + y\n")
    return Target(script, "run")


@pytest.fixture(autouse=True)
def fixed_workspace():
    with patch(
        "qjob_lib.submit.submitter.allocate_workspace_path", return_value=WORKSPACE
    ) as mock_allocate:
        yield mock_allocate


def test_submit_torque(transport, target):
    transport.responses = [(0, []), (0, ["1.head", "2.head", "3.head"])]

    job = Submitter(Torque, transport, target, [1, [2, 3], ("x",)]).submit()

    assert isinstance(job, Job)
    assert job.directory == WORKSPACE
    assert job.jobIds == ["1.head", "2.head", "3.head"]
    assert [t.index for t in job.tasks] == [1, 2, 3]
    assert job.task(2).arguments == [2, 3]
    assert job.task(3).output_file == "3_output.yaml"

    assert transport.commands == [
        "mkdir -p 'jobs/77'",
        "sh 'jobs/77/command.sh'",
    ]

    remote = transport.root / WORKSPACE
    assert (remote / "simulate.py").read_text() == target.script.read_text()
    helper = Path(remote_helper.__file__).read_text()
    assert (remote / "qjob_remote.py").read_text() == helper
    assert yaml.safe_load((remote / "arguments.yaml").read_text()) == {
        "arg1": [1],
        "arg2": [2, 3],
        "arg3": ["x"],
    }

    script = (remote / "command.sh").read_text().splitlines()
    assert len(script) == 3
    for i, line in enumerate(script, start=1):
        assert line.startswith("printf '%s\\n' ")
        assert f"qsub -j oe -o /dev/null -N 'run_{i}' 2>&1" in line
        assert f"jobs/77/{i}_diary.txt" in line
        assert f"arg{i}" in line


def test_submit_sge_with_directives(transport, target):
    transport.responses = [
        (0, []),
        (0, ['Your job 501 ("run_1") has been submitted']),
    ]

    job = Submitter(SGE, transport, target, [[1, 2]], directives="-l h_rt=0:10:0").submit()

    assert job.jobIds == ["501"]
    script = (transport.root / WORKSPACE / "command.sh").read_text()
    assert "#$ -l h_rt=0:10:0" in script
    assert "qsub -j y" in script


def test_submit_tasks_get_distinct_ids(transport, target):
    n = 25
    transport.responses = [(0, []), (0, [f"{i}.head" for i in range(n)])]

    job = Submitter(Torque, transport, target, list(range(n))).submit()

    assert len(set(job.jobIds)) == n


def test_submit_short_response(transport, target):
    transport.responses = [(0, []), (0, ["1.head"])]

    with pytest.raises(SubmissionError) as exc_info:
        Submitter(Torque, transport, target, [1, 2]).submit()

    assert exc_info.value.output == ["1.head"]


def test_submit_rejected_by_scheduler(transport, target):
    transport.responses = [(0, []), (0, ["1.head", "qsub: Unknown queue"])]

    with pytest.raises(SubmissionError, match="Unknown queue"):
        Submitter(Torque, transport, target, [1, 2]).submit()


def test_submit_duplicate_ids(transport, target):
    transport.responses = [(0, []), (0, ["1.head", "1.head"])]

    with pytest.raises(SubmissionError, match="duplicate"):
        Submitter(Torque, transport, target, [1, 2]).submit()


def test_submit_no_tasks(transport, target):
    with pytest.raises(QJobError, match="No tasks"):
        Submitter(Torque, transport, target, [])


def test_submit_workspace_creation_fails(transport, target):
    transport.responses = [(1, ["mkdir: cannot create directory: Permission denied"])]

    with pytest.raises(TransportError, match="Permission denied"):
        Submitter(Torque, transport, target, [1]).submit()

    assert len(transport.commands) == 1


def test_submit_copies_local_package(transport, tmp_path):
    root = tmp_path / "project"
    (root / "pkg").mkdir(parents=True)
    (root / "pkg" / "__init__.py").write_text("")
    (root / "pkg" / "tools.py").write_text("VALUE = 1\n")
    script = root / "main.py"
    script.write_text("from pkg import tools\n\ndef run(x):\n    return x + tools.VALUE\n")
    transport.responses = [(0, []), (0, []), (0, ["1.head"])]

    Submitter(Torque, transport, Target(script, "run"), [1]).submit()

    assert "mkdir -p 'jobs/77/pkg'" in transport.commands
    assert (transport.root / WORKSPACE / "pkg" / "tools.py").is_file()
    assert (transport.root / WORKSPACE / "main.py").is_file()


def test_submit_without_dependencies(transport, tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    (root / "helpers.py").write_text("X = 1\n")
    script = root / "main.py"
    script.write_text("import helpers\n\ndef run(x):\n    return x\n")
    transport.responses = [(0, []), (0, ["1.head"])]

    Submitter(
        Torque, transport, Target(script, "run"), [1], copy_dependencies=False
    ).submit()

    assert (transport.root / WORKSPACE / "main.py").is_file()
    assert not (transport.root / WORKSPACE / "helpers.py").exists()
    assert (transport.root / WORKSPACE / "qjob_remote.py").is_file()


def test_submit_function_without_outputs(transport, target):
    transport.responses = [(0, []), (0, ["1.head"])]
    target = Target(target.script, "run", num_outputs=0)

    job = Submitter(Torque, transport, target, [1]).submit()

    assert job.task(1).output_file is None
    assert "output" not in (transport.root / WORKSPACE / "command.sh").read_text()


def test_submit_passes_working_dir(transport, target, fixed_workspace):
    transport.responses = [(0, []), (0, ["1.head"])]

    Submitter(Torque, transport, target, [1], working_dir="/scratch/alice").submit()

    fixed_workspace.assert_called_once_with("/scratch/alice")


def test_submit_shared_arguments_are_loadable_per_task(transport, target):
    transport.responses = [(0, []), (0, ["1.head", "2.head"])]
    shared = [{"a": 1}, [2]]

    Submitter(Torque, transport, target, [shared, shared]).submit()

    path = transport.root / WORKSPACE / "arguments.yaml"
    assert "&" not in path.read_text()
    assert remote_helper.load_arguments(path, "arg1") == shared
    assert remote_helper.load_arguments(path, "arg2") == shared
