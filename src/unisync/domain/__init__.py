"""Entity normalization and cross-system synchronization engine."""
