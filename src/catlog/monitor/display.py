"""Render images inline in the terminal."""

import base64

import click

# iTerm2 inline image protocol, also understood by WezTerm and Konsole
_OSC = "\033]1337;File="
_BEL = "\a"


def render_image(image_data: bytes, size: int = 60) -> None:
    """Write an image inline, ``size`` character cells wide.

    The terminal decodes the image; nothing is decoded here.
    """
    if not image_data:
        raise ValueError("No image data to render")

    payload = base64.b64encode(image_data).decode("ascii")
    header = f"inline=1;size={len(image_data)};width={size};preserveAspectRatio=1"
    click.echo(f"{_OSC}{header}:{payload}{_BEL}")
