"""Bundled node converters. Each module lists its classes in CONVERTERS."""
