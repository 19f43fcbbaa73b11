"""Application-layer orchestration for bill conversion."""
