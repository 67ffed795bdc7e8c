"""Settlement planning and the tool-scoped payment agent."""
