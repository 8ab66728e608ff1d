"""HTTP API and session orchestration for local Codenames games."""
