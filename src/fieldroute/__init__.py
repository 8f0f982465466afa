"""Field-service route optimization service."""
