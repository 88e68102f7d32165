"""CLI package for swapwiz."""
