"""Kyverno support: policy indexing, policy gathering and assessment results."""