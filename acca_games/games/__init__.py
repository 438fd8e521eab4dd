"""Game engines: procedural trial generation, answer verification and session orchestration."""
