"""Services behind the translations extension."""
