"""Infrastructure adapters implementing the service-layer ports."""
