"""Connection pools for the benchmarked backends."""
