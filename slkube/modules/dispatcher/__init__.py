"""
Dispatcher Module - Black Box Interface

Purpose: Run a starlake command as a Kubernetes Job and resolve its exit code
Interface: JobDispatcher.submit(), await_pod(), stream_and_resolve(), dispatch()
Hidden: Polling loops, TTL race handling, manifest temp files
"""

from .dispatcher import JobDispatcher, RenderedJob

__all__ = ["JobDispatcher", "RenderedJob"]
