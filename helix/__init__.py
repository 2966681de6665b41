"""
Helix Risk Core - Document-driven Risk Scoring Engine

Normalizes extracted financial documents, aggregates them into a canonical
feature vector per subject, and computes an explainable composite risk score
with continuous monitoring of score changes.
"""

__version__ = "0.1.0"
