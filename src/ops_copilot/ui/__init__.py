"""User interface for Ops Copilot.

The CLI can be run directly:
    python -m ops_copilot.ui.cli command "show all tasks"

CLI components are not exported here so the module loads cleanly when run
as a script.
"""

__all__ = []  # CLI is run directly, no exports needed
