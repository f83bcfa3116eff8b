"""Promptly edge read API: versioned prompts behind API keys and monthly quotas."""
