"""Platform clients and the protocols the migration engine consumes."""
