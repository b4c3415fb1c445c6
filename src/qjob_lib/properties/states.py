# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Self

from qjob_lib.core.config import CFG


class CanonicalState(Enum):
    """
    State of a task as reported by qjob, independent of the scheduler backend.

    Every native state code of every backend maps onto one of these states.
    A task that is no longer known to the scheduler is `DONE`.
    """

    DONE = 1
    HELD = 2
    QUEUED = 3
    RUNNING = 4
    TRANSFERRING = 5
    WAITING = 6
    ERROR = 7

    def __str__(self) -> str:
        """
        Return the lowercase string representation of the enum variant.

        Returns:
            str: The name of the state in lowercase.
        """
        return self.name.lower()

    @classmethod
    def fromStr(cls, s: str) -> Self:
        """
        Convert a string to the corresponding CanonicalState enum variant.

        Args:
            s (str): String representation of the state (case-insensitive).

        Returns:
            CanonicalState: Corresponding enum variant.

        Raises:
            ValueError: If the string does not name a canonical state.
        """
        try:
            return cls[s.strip().upper()]
        except KeyError as e:
            raise ValueError(f"Unknown canonical state '{s}'.") from e

    @property
    def color(self) -> str:
        """
        Return the display color associated with this CanonicalState.

        Returns:
            str: A string representing the color for presentation purposes.
        """
        return getattr(CFG.state_colors, str(self))


@dataclass(frozen=True)
class AggregateState:
    """
    Combined state of all tasks of a job.

    Holds the set of distinct canonical states of the tasks. The string
    representation joins the sorted state names with '/', e.g. 'queued/running'.
    """

    states: frozenset[CanonicalState]

    @classmethod
    def fromStates(cls, states: Iterable[CanonicalState]) -> Self:
        """
        Build the aggregate state from the states of individual tasks.

        Args:
            states (Iterable[CanonicalState]): States of the tasks of a job.

        Returns:
            AggregateState: The combined state.
        """
        return cls(frozenset(states))

    def __str__(self) -> str:
        return "/".join(self.labels())

    def labels(self) -> list[str]:
        """Return the sorted names of the distinct states."""
        return sorted(str(state) for state in self.states)

    def isDone(self) -> bool:
        """
        Check whether every task of the job is done.

        A job without tasks is considered done.
        """
        return self.states <= {CanonicalState.DONE}

    def __contains__(self, state: object) -> bool:
        return state in self.states
