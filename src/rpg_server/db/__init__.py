"""SQLite persistence layer: connection primitives, schema, and repositories."""
