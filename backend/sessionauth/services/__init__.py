"""Application services: session lifecycle and the user directory."""
