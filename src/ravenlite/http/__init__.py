"""HTTP layer: commands and the request executor."""
