"""Infrastructure adapters: persistence, API, auth, realtime, storage and AI providers."""
