"""
Transactional license transitions.

A transition is a pure function that receives the current license
(or None when the code does not exist) and returns a LicenseTransition
describing the state to write, the result for the caller and an
optional domain error. The repository applies it inside a single
row-locked transaction, so every read-modify-write on one code is
linearized. Errors are raised only after the transaction commits,
which lets a transition persist a side effect (marking a license
expired) and still fail the caller.
"""
from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.domain.exceptions import DomainException
from licenses.domain.license import License


@dataclass(frozen=True)
class LicenseTransition:
    """Outcome of a transition on one license."""

    license: Optional[License]
    changed: bool = False
    error: Optional[DomainException] = None
    result: Any = None

    @classmethod
    def keep(cls, license: License, result: Any = None) -> "LicenseTransition":
        """Succeed without writing."""
        return cls(license=license, changed=False, result=result)

    @classmethod
    def write(cls, license: License, result: Any = None) -> "LicenseTransition":
        """Succeed and persist the new state."""
        return cls(license=license, changed=True, result=result)

    @classmethod
    def fail(
        cls,
        error: DomainException,
        license: Optional[License] = None,
        changed: bool = False,
    ) -> "LicenseTransition":
        """Fail, optionally persisting a side effect first."""
        return cls(license=license, changed=changed, error=error)

    @property
    def ok(self) -> bool:
        """Whether the transition succeeded."""
        return self.error is None

    def unwrap(self) -> "LicenseTransition":
        """
        Raise the carried error, if any.

        Returns:
            The transition itself when successful

        Raises:
            DomainException: The error produced by the transition
        """
        if self.error is not None:
            raise self.error
        return self


TransitionFn = Callable[[Optional[License]], LicenseTransition]
