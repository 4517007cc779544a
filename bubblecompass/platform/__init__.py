"""Platform adapters (haptics)."""
