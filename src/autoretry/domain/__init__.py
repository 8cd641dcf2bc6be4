"""Domain layer: retry profiles, policies and their configuration models."""
