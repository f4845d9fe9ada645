"""Web application package."""
