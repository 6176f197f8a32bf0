"""Session registry, turn buffering and turn processing."""
