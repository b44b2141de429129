"""Command-line interface for ldapctl."""
