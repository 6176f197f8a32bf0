"""Server-side application, runtime and transport layers."""
