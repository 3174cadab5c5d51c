"""HTTP API for shopassist."""
