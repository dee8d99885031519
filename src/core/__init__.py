"""Splitter core: streaming segmentation and run tracking."""
