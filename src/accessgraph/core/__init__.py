"""Canonical model, normalization and hierarchy reconstruction."""
