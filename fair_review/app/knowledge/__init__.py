"""Static knowledge base of fair-competition review questions."""
