"""Storage layer for stacktrack: ORM schema, engine setup and repositories."""
