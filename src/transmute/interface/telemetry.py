"""Console telemetry: progress lines for people, log records for everything else."""

import logging
from typing import Optional

from rich.console import Console

from transmute.domain.protocols import TelemetryPort


class ProjectTelemetry(TelemetryPort):
    """
    Implements TelemetryPort on a rich console and a stdlib logger.

    Steps and warnings go to the console (stderr, so printed reports stay
    clean on stdout) and are mirrored to the ``transmute`` logger.
    """

    def __init__(
        self,
        project_name: str,
        color: str = "cyan",
        welcome: str = "",
        console: Optional[Console] = None,
    ) -> None:
        self.project_name = project_name
        self.color = color
        self.welcome = welcome
        self.console = console or Console(stderr=True, highlight=False)
        self.logger = logging.getLogger(f"{project_name.lower()}.telemetry")

    def handshake(self) -> None:
        banner = f"[bold {self.color}]{self.project_name}[/]"
        if self.welcome:
            banner += f" [dim]{self.welcome}[/]"
        self.logger.info(f"{self.project_name} {self.welcome}".strip())
        self.console.print(banner)

    def step(self, message: str) -> None:
        self.logger.info(message)
        self.console.print(f"[{self.color}]>[/] {message}" if message else "")

    def warning(self, message: str) -> None:
        self.logger.warning(message)
        self.console.print(f"[yellow]warning:[/] {message}")

    def error(self, message: str) -> None:
        self.logger.error(message)
        self.console.print(f"[bold red]error:[/] {message}")

    def debug(self, message: str) -> None:
        self.logger.debug(message)
