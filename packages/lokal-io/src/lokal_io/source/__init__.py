"""Source fetching, caching and corpus extraction."""
