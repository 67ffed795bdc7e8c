"""Wardrobe taxonomy, slot matching and catalog search."""
