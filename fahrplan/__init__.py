"""Terminal browser for Frab/Pentabarf conference schedules."""

__version__ = "0.3.0"
