"""
Host information snapshot for the get_system_info tool.
"""

import os
import platform
import socket
import sys
import tempfile
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

import psutil

GIGABYTE = 1024 ** 3


@dataclass
class SystemInfo:
    """Point-in-time description of the host."""

    platform: str
    arch: str
    release: str
    hostname: str
    uptime_hours: int
    memory_total_gb: int
    memory_free_gb: int
    cpus: int
    home_dir: str
    tmp_dir: str

    def to_dict(self) -> dict[str, Any]:
        """Client-facing layout, with units spelled out."""
        return {
            "platform": self.platform,
            "arch": self.arch,
            "release": self.release,
            "hostname": self.hostname,
            "uptime": f"{self.uptime_hours} hours",
            "memory": {
                "total": f"{self.memory_total_gb}GB",
                "free": f"{self.memory_free_gb}GB",
            },
            "cpus": self.cpus,
            "homeDir": self.home_dir,
            "tmpDir": self.tmp_dir,
        }


def collect_system_info(now: Optional[float] = None) -> SystemInfo:
    """
    Read the host environment. Side-effect free.

    Uptime is floored to whole hours; memory is rounded to whole gigabytes.
    """
    now = time.time() if now is None else now
    memory = psutil.virtual_memory()

    return SystemInfo(
        platform=sys.platform,
        arch=platform.machine(),
        release=platform.release(),
        hostname=socket.gethostname(),
        uptime_hours=int(max(0.0, now - psutil.boot_time()) // 3600),
        memory_total_gb=round(memory.total / GIGABYTE),
        memory_free_gb=round(memory.available / GIGABYTE),
        cpus=os.cpu_count() or 0,
        home_dir=str(Path.home()),
        tmp_dir=tempfile.gettempdir(),
    )


def as_raw_dict(info: SystemInfo) -> dict[str, Any]:
    """Field-for-field dict, used for structured result data."""
    return asdict(info)
