"""Scene code tools and their argument helpers."""
