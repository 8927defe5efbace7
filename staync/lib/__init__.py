"""Shared infrastructure: hooks, realtime fan-out, storage, AI and tracing."""
