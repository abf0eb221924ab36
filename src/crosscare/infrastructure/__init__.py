"""Infrastructure adapters: persistence, LLM providers, metrics and monitoring."""
