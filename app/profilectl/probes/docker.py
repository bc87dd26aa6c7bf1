"""Docker live service probe.

Lists containers with the docker CLI and reports each one's state.
"""

import logging
import subprocess

from profilectl.models.state import LiveSnapshot
from profilectl.probes.base import ServiceProbe
from profilectl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# One container per line: "<name>\t<state>"
_PS_FORMAT = "{{.Names}}\t{{.State}}"


class DockerProbe(ServiceProbe):
    """Probe for containers managed by the local Docker daemon.

    Uses ``docker ps -a`` so that stopped and failing containers are
    reported as well as running ones.
    """

    def __init__(self, executable: str = "docker") -> None:
        """Initialize the probe.

        Args:
            executable: Docker-compatible CLI to invoke (e.g., 'podman').
        """
        self.executable = executable

    @property
    def name(self) -> str:
        """Return the CLI name as the probe identifier."""
        return self.executable

    def is_available(self) -> bool:
        """Check if the container CLI is on PATH."""
        return command_exists(self.executable)

    def snapshot(self, timeout: float) -> LiveSnapshot:
        """Query container states.

        Args:
            timeout: Upper bound in seconds for the docker call.

        Returns:
            LiveSnapshot of all containers, or an unavailable snapshot.
        """
        if not self.is_available():
            return LiveSnapshot.unavailable(f"{self.executable} is not installed")

        try:
            result = run_command(
                [self.executable, "ps", "-a", "--format", _PS_FORMAT],
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("%s ps timed out after %ss", self.executable, timeout)
            return LiveSnapshot.unavailable(f"{self.executable} ps timed out after {timeout}s")
        except OSError as e:
            logger.warning("Failed to run %s: %s", self.executable, e)
            return LiveSnapshot.unavailable(str(e))

        if not result.success:
            logger.warning("%s ps failed: %s", self.executable, result.error_summary)
            return LiveSnapshot.unavailable(f"{self.executable} ps failed: {result.error_summary}")

        entries = [self._parse_ps_line(line) for line in result.lines]
        return LiveSnapshot.from_entries(entries)

    def _parse_ps_line(self, line: str) -> dict[str, object]:
        """Parse a single line of ``docker ps`` output.

        Args:
            line: Tab-separated name and state.

        Returns:
            Entry mapping for LiveSnapshot.from_entries. A line without a
            name produces an entry that from_entries drops.
        """
        name, _, state = line.partition("\t")
        state = state.strip().lower()
        return {
            "name": name.strip(),
            "running": state == "running",
            "state": state or None,
        }
