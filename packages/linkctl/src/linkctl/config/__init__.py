"""Settings, target and override table loading."""
