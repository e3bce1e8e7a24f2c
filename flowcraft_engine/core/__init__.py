"""Core engine: path access, graph walking, node context and the run orchestrator."""
