"""Environment-driven solver settings."""
