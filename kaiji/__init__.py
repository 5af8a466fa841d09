"""Kaiji - timely disclosure watcher for the Tokyo market."""

__version__ = "0.1.0"
