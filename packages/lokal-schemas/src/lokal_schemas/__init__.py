"""lokal-schemas: Pydantic schemas shared across lokal packages."""
