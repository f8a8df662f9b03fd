"""Core types of the research flow: steps, cells, run state, errors."""
