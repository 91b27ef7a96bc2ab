"""
policystack - layered policy resolution for AI coding agents

Resolves which policy documents apply to a working context, in what order,
and how their directives combine when they overlap or conflict.
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
