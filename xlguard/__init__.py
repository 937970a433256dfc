"""xlguard application layer: export profiles, pipeline and CLI on top of xlguard_io."""
