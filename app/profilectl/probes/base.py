"""Abstract base class for live service probes.

This module defines the ServiceProbe interface that every source of
live service status must implement.
"""

from abc import ABC, abstractmethod

from profilectl.models.state import LiveSnapshot


class ServiceProbe(ABC):
    """Abstract base class for live service probes.

    A probe queries an external runtime once and returns a LiveSnapshot.
    Probes never raise for runtime failures: an unreachable runtime, a
    timeout or unparsable output all yield ``LiveSnapshot.unavailable``,
    which reconciliation treats as "status unknown", not "not running".

    Example:
        >>> probe = DockerProbe()
        >>> snapshot = probe.snapshot(timeout=5)
        >>> if not snapshot.available:
        ...     print(snapshot.error)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the probe (e.g., 'docker')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the runtime behind this probe can be queried.

        Returns:
            True if the probe can be used, False otherwise.
        """

    @abstractmethod
    def snapshot(self, timeout: float) -> LiveSnapshot:
        """Capture the current service list.

        Args:
            timeout: Upper bound in seconds for the query.

        Returns:
            LiveSnapshot; unavailable if the runtime could not be queried.
        """
