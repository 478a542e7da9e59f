"""HTTP API entrypoint."""
