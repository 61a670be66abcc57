"""Benchmark orchestration, workload generation and comparison."""
