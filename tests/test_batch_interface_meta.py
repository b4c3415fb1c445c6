# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import pytest

from qjob_lib.batch.interface import SchedulerInterface, SchedulerMeta
from qjob_lib.batch.sge import SGE
from qjob_lib.batch.torque import Torque
from qjob_lib.core.config import CFG
from qjob_lib.core.error import QJobError


def test_registry_contains_backends():
    assert SchedulerMeta._registry["Torque"] is Torque
    assert SchedulerMeta._registry["SGE"] is SGE


@pytest.mark.parametrize(
    "name,expected",
    [("Torque", Torque), ("torque", Torque), ("SGE", SGE), (" sge ", SGE)],
)
def test_from_str(name, expected):
    assert SchedulerMeta.fromStr(name) is expected


def test_from_str_unknown():
    with pytest.raises(QJobError, match="No scheduler registered as 'Slurm'"):
        SchedulerMeta.fromStr("Slurm")


def test_obtain_explicit_name_wins(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.scheduler, "SGE")
    assert SchedulerMeta.obtain("Torque") is Torque


def test_obtain_from_environment(monkeypatch):
    monkeypatch.setenv(CFG.env_vars.scheduler, "SGE")
    monkeypatch.setattr(CFG.cluster, "scheduler", "Torque")
    assert SchedulerMeta.obtain(None) is SGE


def test_obtain_from_config(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.scheduler, raising=False)
    monkeypatch.setattr(CFG.cluster, "scheduler", "torque")
    assert SchedulerMeta.obtain(None) is Torque


def test_obtain_nothing_specified(monkeypatch):
    monkeypatch.delenv(CFG.env_vars.scheduler, raising=False)
    monkeypatch.setattr(CFG.cluster, "scheduler", None)
    with pytest.raises(QJobError, match="No scheduler specified"):
        SchedulerMeta.obtain(None)


@pytest.mark.parametrize(
    "method,args",
    [
        ("envName", ()),
        ("translateDirectives", ([],)),
        ("translateSubmit", ("name", "cmd")),
        ("parseSubmitResponse", ([], 0)),
        ("translateStatusQuery", ([], None)),
        ("parseStatusResponse", ([],)),
        ("translateKill", ([],)),
    ],
)
def test_interface_methods_not_implemented(method, args):
    with pytest.raises(NotImplementedError):
        getattr(SchedulerInterface, method)(*args)
