"""HTTP API: FastAPI app, garden manager, schemas, routes."""
