"""Services - counter state, reconciliation, sinks, scheduling and polling."""
