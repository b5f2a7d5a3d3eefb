"""Post-migration reconciliation checks."""
