"""Core domain package for chatrelay.

Core contains admission, deduplication, session affinity, and the worker
pipeline without any WebSocket, Gemini, or HTTP-specific code, keeping the
dispatch logic portable.
"""
