"""pygame window and keyboard input."""
