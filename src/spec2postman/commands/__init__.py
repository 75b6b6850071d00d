"""Built-in CLI sub-command groups for spec2postman."""
