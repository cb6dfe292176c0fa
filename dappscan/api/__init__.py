"""HTTP API for dappscan."""
