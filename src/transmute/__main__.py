"""Package entry point - composition root. Wire dependencies and run the CLI app."""

import logging
import os

from transmute.infrastructure.di.container import TransmuteContainer
from transmute.interface.cli import CLIAppFactory, CLIDependencies


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    logging.basicConfig(
        level=os.environ.get("TRANSMUTE_LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    # Telemetry is already printed by the console; keep it out of the root handler.
    telemetry_logger = logging.getLogger("transmute.telemetry")
    telemetry_logger.addHandler(logging.NullHandler())
    telemetry_logger.propagate = False
    container = TransmuteContainer.get_instance()

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        catalog=container.get_catalog(),
        reporter=container.get_reporter(),
        filesystem=container.get_filesystem_gateway(),
        printer=container.get_printer(),
        front_end_provider=container.get_front_end,
        type_model_provider=container.get_type_model,
    )

    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
