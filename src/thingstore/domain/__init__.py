"""Identity, type-hierarchy resolution and merge engine."""
