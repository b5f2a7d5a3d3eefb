"""Record models for both stores and the structured warning type."""
