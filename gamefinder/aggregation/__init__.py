"""Multi-source aggregation: worker pool, splitting and orchestration."""
