"""Migration engine: orchestrator, entity handlers, persisted state and coordinator."""
