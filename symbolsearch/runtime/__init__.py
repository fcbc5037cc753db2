"""Incremental-search runtime: controller state machine, config and wiring."""
