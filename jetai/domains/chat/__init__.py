"""Chat domain - stage machine, model fallback chain and turn orchestration."""
