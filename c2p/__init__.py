"""Relate OSCAL compliance documents to Kubernetes policy resources and policy results to OSCAL."""

__version__ = "0.1.0"