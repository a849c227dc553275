"""catlog: watch log output for HTTP status codes and show a cat for each one."""

__version__ = "0.1.0"
