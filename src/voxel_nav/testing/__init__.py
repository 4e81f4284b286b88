# src/voxel_nav/testing/__init__.py
"""In-memory fakes for unit tests and demos."""
