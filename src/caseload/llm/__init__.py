"""LLM client for the hosted generative-AI provider."""
