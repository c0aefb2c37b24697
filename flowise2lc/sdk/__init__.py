"""Converter SDK: base classes, discovery and schemas."""
