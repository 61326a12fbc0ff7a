"""HTTP API for Townsquare."""
