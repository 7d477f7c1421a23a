"""PostgreSQL persistence of canonical records."""
