"""
Core logic for the agent system.

This subpackage provides the agent itself, the routers that resolve
models and dispatch configuration entries, the tool server initializers,
the generation loop, schema helpers, prompt management and the
crew-style task helper.
"""

__all__ = [
    "agent",
    "crew",
    "generation",
    "initializers",
    "prompts",
    "router",
    "schema",
]
