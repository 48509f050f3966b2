"""storesync - mirror store resources between the admin API and a local directory."""

__version__ = "0.1.0"
