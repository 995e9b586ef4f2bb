"""Application layer: pure engines and orchestration services."""
