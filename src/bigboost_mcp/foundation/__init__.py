"""Foundation - configuration, error taxonomy, tool registry and response envelope."""
