"""Taskwright - free-text commands for projects and tasks, planned by a local model."""

__version__ = "0.1.0"
