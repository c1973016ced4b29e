"""Strategy evaluators, registry and consensus."""
