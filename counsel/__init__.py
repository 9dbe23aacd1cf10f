"""Persona counsel relay: moderated LLM completions with a bounded conversation log."""

__version__ = "1.0.0"
