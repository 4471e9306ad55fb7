"""Sub-routers por feature."""
