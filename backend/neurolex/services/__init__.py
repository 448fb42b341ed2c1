"""Services package for spaced repetition, study sessions and LLM access."""
