"""Version 1 JSON endpoints."""
