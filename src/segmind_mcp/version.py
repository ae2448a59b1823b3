"""Package version, shared by the user agent and the server banner."""

__version__ = "0.1.0"
