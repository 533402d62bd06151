"""HTTP API for validating, storing and executing workflow graphs."""
