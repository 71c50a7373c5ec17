"""Storage backends and importer-boundary adapters."""
