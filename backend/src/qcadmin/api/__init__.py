"""HTTP application, response envelope and exception handlers."""
