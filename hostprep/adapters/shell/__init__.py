"""Shell adapters — one-shot command execution and live process relay."""
