"""Ops Copilot: command and tool-execution pipeline for a business-operations console."""

__version__ = "0.1.0"
