"""Hard-coded system prompts, one per gateway task."""
