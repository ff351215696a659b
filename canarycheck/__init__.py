"""Topology components, topology queries, label and duration helpers, Prometheus lookups and a topology API client."""

__version__ = "0.1.0"