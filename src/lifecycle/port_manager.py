"""
Port helpers for development restarts.

When a previous instance of the service is still holding the lifecycle port
(hot reload, a crashed run left behind), the API server wrapper kills the
holder in the background and moves on to the next free port instead of
crashing. None of this runs in production.

Usage:
    ports = PortManager(production=False)
    port = ports.find_available_port(9000)
    ports.kill_port_process_background(9000)
"""

import asyncio
import socket
import subprocess
from typing import Optional
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.PORT)


class PortManager:
    """
    Port availability checks, process lookup and background port freeing.
    """

    def __init__(self, production: bool = False, max_attempts: int = 100):
        """
        Args:
            production: Disables kill_port_process_background()
            max_attempts: Upper bound on ports probed by find_available_port()
        """
        self.production = production
        self.max_attempts = max_attempts

    def is_port_in_use(self, port: int, host: str = "0.0.0.0") -> bool:
        """
        Check if a port is currently in use.

        Args:
            port: Port number to check (0-65535)
            host: Host address (default: 0.0.0.0 for any interface)

        Returns:
            True if port is in use, False if available
        """
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind((host, port))
                return False
            except OSError:
                return True

    def find_process_on_port(self, port: int) -> Optional[int]:
        """
        Find process ID (PID) using a specific port.

        Tries `lsof` first, then `fuser`.

        Returns:
            PID if found, None otherwise
        """
        for command in (["lsof", "-ti", f":{port}"], ["fuser", f"{port}/tcp"]):
            try:
                result = subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=1
                )
            except (subprocess.TimeoutExpired, FileNotFoundError):
                continue
            if result.returncode == 0 and result.stdout.strip():
                try:
                    return int(result.stdout.strip().split()[0])
                except (ValueError, IndexError):
                    continue
        return None

    def find_available_port(self, start_port: int, host: str = "0.0.0.0") -> int:
        """
        Return the first free port at or above start_port.

        Raises:
            RuntimeError: No free port within max_attempts
        """
        for port in range(start_port, min(start_port + self.max_attempts, 65536)):
            if not self.is_port_in_use(port, host):
                log.debug("Found available port", port=port)
                return port
            log.debug("Port is taken, trying next one", port=port)

        raise RuntimeError(
            f"No available port in range {start_port}-{start_port + self.max_attempts - 1}"
        )

    def _kill_port_process(self, port: int) -> Optional[int]:
        pid = self.find_process_on_port(port)
        if pid is None:
            return None

        log.warn("Killing process on port in background", pid=pid, port=port)
        try:
            subprocess.run(["kill", "-9", str(pid)], timeout=1, check=True)
            log.info("Process killed successfully", pid=pid, port=port)
        except (subprocess.SubprocessError, OSError) as e:
            log.error("Failed to kill process", pid=pid, port=port, error=str(e))
        return pid

    def kill_port_process_background(self, port: int) -> Optional[asyncio.Future]:
        """
        Kill whatever holds `port` without waiting for it.

        DANGER: sends SIGKILL to the holder. Disabled in production.

        Returns:
            Executor future resolving to the killed PID (or None), or None in production
        """
        if self.production:
            return None

        loop = asyncio.get_running_loop()
        return loop.run_in_executor(None, self._kill_port_process, port)
