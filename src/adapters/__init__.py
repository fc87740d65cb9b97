"""Adapters binding the core ports to OneBot, Gemini and HTTP."""
