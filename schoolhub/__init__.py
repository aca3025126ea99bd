"""SchoolHub API: authentication and access control for school management."""

__version__ = "1.0.0"
