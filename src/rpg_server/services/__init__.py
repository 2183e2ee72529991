"""Domain services: access checks, validation and masking on top of the repositories."""
