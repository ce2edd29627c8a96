"""Container lifecycle for CLI commands."""

from contextlib import contextmanager
from typing import Iterator

from dishka import Container

from algolia_sync.application.di import create_container
from algolia_sync.config import Config, configure_logging


@contextmanager
def unit_of_work(config: Config | None = None) -> Iterator[Container]:
    """Open the application container and one unit of work inside it."""
    config = config or Config()  # type: ignore[call-arg]
    configure_logging(config.logging)

    container = create_container(config)
    try:
        with container() as uow:  # APP -> UOW
            yield uow
    finally:
        container.close()
