"""HTTP API over the eventlog core."""
