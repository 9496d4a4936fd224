"""Chaos testing for Kubernetes: deletes randomly chosen pods at random intervals, with development task helpers."""

__version__ = "0.1.0"