"""reward-doctor — rebuild clean (timestamp, amount) reward rows from noisy mining exports."""

__version__ = "0.1.0"
