"""Command implementations for the changebump CLI."""
