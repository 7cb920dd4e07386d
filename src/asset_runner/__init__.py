"""Incremental asset build runner: cache, cleanup, parallel build and watch mode."""
