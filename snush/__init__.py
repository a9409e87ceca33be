"""A small interactive Unix shell with pipelines, redirection and background jobs."""

__version__ = "0.1.0"
__all__ = ["tokens", "lexsyn", "util", "job", "execute", "shell"]