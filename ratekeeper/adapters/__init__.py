"""Storage backends for rate limit counters."""
