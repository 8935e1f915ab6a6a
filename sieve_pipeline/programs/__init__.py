"""Small programs built on the channel primitives."""
