"""HTTP middleware — request IDs and security headers."""
