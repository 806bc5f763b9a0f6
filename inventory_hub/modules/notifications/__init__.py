"""Notifications module: per-user notifications fanned out from bus events."""
