"""HTTP API for PawRefer."""
