# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import os
import sys
from pathlib import Path
from time import sleep
from typing import Any, NoReturn

import click
import yaml
from click_help_colors import HelpColorsCommand
from click_option_group import optgroup
from rich.console import Console
from rich.text import Text

from qjob_lib.batch.interface import SchedulerMeta
from qjob_lib.core.common import load_yaml_dumper, load_yaml_loader
from qjob_lib.core.config import CFG
from qjob_lib.core.error import QJobError
from qjob_lib.core.logger import get_logger
from qjob_lib.job import Job
from qjob_lib.properties.states import AggregateState
from qjob_lib.properties.target import Target
from qjob_lib.submit.submitter import Submitter
from qjob_lib.transport import CredentialProvider, SSHTransport

logger = get_logger(__name__)
console = Console(stderr=True)


@click.command(
    short_help="Run a Python function on the cluster.",
    help=f"""
Run a Python function on the cluster, creating a separate task for each element of a task list.

{click.style("TARGET", fg="green")}    The function to run, as 'path/to/script.py:function'.

{click.style("ARGS_FILE", fg="green")} YAML file containing a list with one element per task.
          A list element is the list of positional arguments of the task,
          any other element is the only argument of the task.

With `--wait`, `{CFG.binary_name} submit` polls the job until all tasks are done,
prints the values returned by the tasks as YAML and removes the job's files
from the cluster. Without it, the files are kept on the cluster.
""",
    cls=HelpColorsCommand,
    help_options_color="bright_blue",
)
@click.argument("target", type=str, metavar=click.style("TARGET", fg="green"))
@click.argument("args_file", type=str, metavar=click.style("ARGS_FILE", fg="green"))
@optgroup.group(f"{click.style('Connection settings', fg='yellow')}")
@optgroup.option(
    "--host",
    type=str,
    default=None,
    help=f"Hostname of the cluster head node. Defaults to ${CFG.env_vars.host} or the configured host.",
)
@optgroup.option(
    "--user",
    type=str,
    default=None,
    help=f"Username on the cluster. Defaults to ${CFG.env_vars.user} or the configured user. Prompted for if not set.",
)
@optgroup.option(
    "--port", type=int, default=None, help="SSH port of the head node."
)
@optgroup.option(
    "--key-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Private key used for authentication instead of a password.",
)
@optgroup.group(f"{click.style('Job settings', fg='yellow')}")
@optgroup.option(
    "--scheduler",
    type=str,
    default=None,
    help=f"Scheduler running on the cluster ('Torque' or 'SGE'). Defaults to ${CFG.env_vars.scheduler} or the configured scheduler.",
)
@optgroup.option(
    "--directive",
    "-d",
    "directives",
    type=str,
    multiple=True,
    help="Scheduler directive applied to every task, e.g. 'walltime=01:00:00'. Can be repeated.",
)
@optgroup.option(
    "--num-outputs",
    type=click.IntRange(min=0),
    default=1,
    show_default=True,
    help="Number of values returned by the function. Use 0 for functions without outputs.",
)
@optgroup.option(
    "--working-dir",
    type=str,
    default=None,
    help="Directory on the cluster in which job files are stored. Defaults to the home directory.",
)
@optgroup.option(
    "--no-deps",
    is_flag=True,
    help="Only copy the script itself, not the local modules it imports.",
)
@optgroup.group(f"{click.style('Waiting', fg='yellow')}")
@optgroup.option(
    "--wait/--no-wait",
    default=True,
    show_default=True,
    help="Wait for the tasks to finish and collect their outputs.",
)
@optgroup.option(
    "--poll",
    type=click.IntRange(min=1),
    default=CFG.submit.poll_interval,
    show_default=True,
    help="Interval in seconds between status queries.",
)
def submit(
    target: str,
    args_file: str,
    host: str | None,
    user: str | None,
    port: int | None,
    key_file: Path | None,
    scheduler: str | None,
    directives: tuple[str, ...],
    num_outputs: int,
    working_dir: str | None,
    no_deps: bool,
    wait: bool,
    poll: int,
) -> NoReturn:
    """
    Run a Python function on the cluster from the command line.
    """
    try:
        function = Target.fromStr(target, num_outputs)
        arguments = _loadTasks(Path(args_file))
        scheduler_cls = SchedulerMeta.obtain(scheduler)

        if not (host := host or os.environ.get(CFG.env_vars.host) or CFG.cluster.host):
            raise QJobError(
                f"No cluster host specified. Use '--host' or set ${CFG.env_vars.host}."
            )
        user = user or os.environ.get(CFG.env_vars.user) or CFG.cluster.user

        credentials = None if key_file else CredentialProvider(host, user)
        with SSHTransport(
            host,
            credentials=credentials,
            user=user,
            port=port or CFG.cluster.port,
            key_filename=key_file,
        ) as transport:
            job = Submitter(
                scheduler_cls,
                transport,
                function,
                arguments,
                directives=list(directives),
                copy_dependencies=not no_deps,
                working_dir=working_dir,
            ).submit()

            if not wait:
                logger.info(f"Not waiting for the tasks. Files are kept in '{job.directory}'.")
                click.echo("\n".join(job.jobIds))
                sys.exit(0)

            with job:
                _waitFor(job, poll)
                if function.producesOutput():
                    click.echo(
                        yaml.dump(
                            _collectOutputs(job),
                            Dumper=load_yaml_dumper(),
                            default_flow_style=False,
                            sort_keys=False,
                        ),
                        nl=False,
                    )

        sys.exit(0)
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        sys.exit(CFG.exit_codes.interrupted)
    except QJobError as e:
        logger.error(e)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)


def _loadTasks(path: Path) -> list[Any]:
    """
    Load the task list from a YAML file.

    Raises:
        QJobError: If the file cannot be read or does not contain a non-empty list.
    """
    try:
        tasks = yaml.load(path.read_text(), Loader=load_yaml_loader())
    except (OSError, yaml.YAMLError) as e:
        raise QJobError(f"Could not read tasks from '{path}': {e}") from e

    if not isinstance(tasks, list) or not tasks:
        raise QJobError(f"File '{path}' does not contain a non-empty list of tasks.")

    return tasks


def _waitFor(job: Job, poll: int) -> None:
    """
    Poll the job until all of its tasks are done, reporting every change of its state.

    If interrupted, all tasks of the job are killed.
    """
    last = None
    try:
        while True:
            status = job.status
            if status != last:
                console.print(_formatStatus(job, status))
                last = status
            if status.isDone():
                return
            sleep(poll)
    except KeyboardInterrupt:
        logger.warning("Interrupted. Killing the tasks.")
        job.kill()
        raise


def _formatStatus(job: Job, status: AggregateState) -> Text:
    text = Text(f"Job '{job.directory}': ")
    for i, state in enumerate(sorted(status.states, key=str)):
        if i > 0:
            text.append("/")
        text.append(str(state), style=state.color)
    return text


def _collectOutputs(job: Job) -> dict[str, list[Any] | None]:
    """
    Read the outputs of all tasks.

    Tasks whose outputs cannot be read are reported and mapped to None.
    """
    outputs: dict[str, list[Any] | None] = {}
    for task in job.tasks:
        try:
            outputs[f"task{task.index}"] = job.readOutput(task.index)
        except QJobError as e:
            logger.error(
                f"Could not read the output of task {task.index} ('{task.job_id}'): {e}\n"
                f"See '{job.workspace.path(task.diary_file)}' for details."
            )
            outputs[f"task{task.index}"] = None

    return outputs
