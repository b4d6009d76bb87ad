"""Trace-driven simulators for pipelines, branch predictors, caches, DRAM and cache conflict probing."""

__version__ = "0.1.0"