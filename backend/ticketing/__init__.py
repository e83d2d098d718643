"""Event ticketing API."""
