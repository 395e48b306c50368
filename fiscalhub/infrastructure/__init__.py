"""Infrastructure adapters for the Backend Service, blob storage and realtime."""
