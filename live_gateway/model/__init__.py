"""Model backends that answer a full conversation history."""
