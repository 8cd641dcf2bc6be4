"""Infrastructure: retry execution on tenacity and configuration loading."""
