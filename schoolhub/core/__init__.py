"""Security primitives and error taxonomy."""
