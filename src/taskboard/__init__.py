"""Taskboard: file-backed task tracker with a JSON REST API."""

__version__ = "0.1.0"
