"""saison-backup - data export, backup and restore for the Saison planner."""

__version__ = "1.0.0"
