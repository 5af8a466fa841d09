"""Persistence for Kaiji."""

from .db_manager import DatabaseManager, WatermarkStore

__all__ = ['DatabaseManager', 'WatermarkStore']
