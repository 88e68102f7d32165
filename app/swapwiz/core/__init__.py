"""Core provisioning logic for swapwiz."""
