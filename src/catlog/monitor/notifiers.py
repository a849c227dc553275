"""What happens when a line carries a status code worth notifying about."""

from collections.abc import Callable
from typing import Protocol

import click

from .display import render_image
from .http_cat import HttpCatClient


class Notifier(Protocol):
    """Receives detected status codes that passed the filter policy.

    notify() raises on failure. The dispatcher logs the failure and moves on
    to the next line.
    """

    name: str

    def notify(self, status_code: int, line: str) -> None:
        ...


class CatNotifier:
    """Announce the status code in the terminal and show its cat."""

    name = "cat"

    def __init__(
        self,
        client: HttpCatClient | None = None,
        show_images: bool = True,
        size: int = 60,
        render: Callable[[bytes, int], None] = render_image,
    ):
        self.client = client or HttpCatClient()
        self.show_images = show_images
        self.size = size
        self.render = render

    def notify(self, status_code: int, line: str) -> None:
        click.echo()
        click.secho(f"🐱 {status_code} Detected! 🐱", fg="bright_yellow", bold=True)
        click.echo()

        if self.show_images:
            image = self.client.fetch(status_code)
            self.render(image, self.size)
            click.echo()
