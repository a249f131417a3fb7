"""Small helpers shared by controllers and services."""
