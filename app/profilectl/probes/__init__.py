"""Live service probes for different container runtimes.

This module exports the probe classes used to capture live service status.
"""

from profilectl.probes.base import ServiceProbe
from profilectl.probes.docker import DockerProbe
from profilectl.probes.file import FileProbe

__all__ = ["DockerProbe", "FileProbe", "ServiceProbe"]
