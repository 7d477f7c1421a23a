"""Import configuration loading."""
