"""HTTP surface of the knowledge base: routes, schemas and middleware."""
