# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import os
from abc import ABCMeta

from qjob_lib.core.config import CFG
from qjob_lib.core.error import QJobError
from qjob_lib.core.logger import get_logger

from .interface import SchedulerInterface

logger = get_logger(__name__)


class SchedulerMeta(ABCMeta):
    """
    Metaclass for scheduler classes.
    """

    # registry of supported schedulers
    _registry: dict[str, type[SchedulerInterface]] = {}

    def __str__(cls: type[SchedulerInterface]):
        """
        Get the string representation of the scheduler class.
        """
        return cls.envName()

    @classmethod
    def register(mcs, scheduler_cls: type[SchedulerInterface]):
        """
        Register a scheduler class in the metaclass registry.

        Args:
            scheduler_cls: Subclass of SchedulerInterface to register.
        """
        mcs._registry[scheduler_cls.envName()] = scheduler_cls

    @classmethod
    def fromStr(mcs, name: str) -> type[SchedulerInterface]:
        """
        Return the scheduler class registered with the given name.

        The lookup is case-insensitive.

        Raises:
            QJobError: If no class is registered for the given name.
        """
        for registered, scheduler_cls in mcs._registry.items():
            if registered.lower() == name.strip().lower():
                return scheduler_cls

        raise QJobError(
            f"No scheduler registered as '{name}'. Supported schedulers: {', '.join(mcs._registry)}."
        )

    @classmethod
    def obtain(mcs, name: str | None) -> type[SchedulerInterface]:
        """
        Obtain a scheduler class by name, environment variable, or configuration.

        Args:
            name (str | None): Optional name of the scheduler to obtain.
                - If provided, returns the class registered under this name.
                - If `None`, uses the scheduler environment variable and then
                  the scheduler set in the qjob configuration.

        Returns:
            type[SchedulerInterface]: The selected scheduler class.

        Raises:
            QJobError: If the name is unknown or no scheduler is specified at all.
        """
        if name:
            return mcs.fromStr(name)

        if env_name := os.environ.get(CFG.env_vars.scheduler):
            logger.debug(f"Using scheduler name from an environment variable: {env_name}.")
            return mcs.fromStr(env_name)

        if CFG.cluster.scheduler:
            logger.debug(f"Using scheduler name from the config: {CFG.cluster.scheduler}.")
            return mcs.fromStr(CFG.cluster.scheduler)

        raise QJobError(
            f"No scheduler specified. Supported schedulers: {', '.join(mcs._registry)}."
        )


def scheduler(cls):
    """
    Class decorator to register a scheduler class with the SchedulerMeta registry.
    """
    SchedulerMeta.register(cls)
    return cls
