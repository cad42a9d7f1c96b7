"""Integration adapters.

Adapters connect the storage layer to the external system it persists into.
"""
