"""Map template registry and signature-based access control backed by Redis."""
