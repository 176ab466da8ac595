"""daytrack-server - personal daily activity time tracker API."""

__version__ = "0.1.0"
