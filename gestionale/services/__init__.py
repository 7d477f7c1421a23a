"""Import orchestration, derived form fields and run reporting."""
