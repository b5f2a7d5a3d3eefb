"""Pure mappers from source records to destination payloads."""
