"""Store-backed resources built on the generic entity framework."""
