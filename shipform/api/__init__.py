"""HTTP API for shipform."""
