"""Run context, errors, logging and serialization shared by every command."""
