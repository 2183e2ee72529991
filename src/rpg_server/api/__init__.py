"""HTTP layer: FastAPI app, routes, auth dependencies, and the access policy."""
