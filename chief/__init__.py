"""PRDs for coding agents: models, progress notes, file watchers, validation and terminal panels."""

__version__ = "0.1.0"