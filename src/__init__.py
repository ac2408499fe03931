"""Tieba widget: cached forum posts with bounded image prefetch."""
