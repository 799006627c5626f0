"""Configuration resolution for cmdpack.

A configuration is a named set of files (dependencies) plus the artifacts it
publishes. The packaging stages consume configurations through the
ConfigurationResolver protocol; DeclaredConfigurations implements it for
configurations declared in the package descriptor.

Public API:

ConfigurationResolver : protocol
    What the stages need from a resolver.
DeclaredConfigurations : class
    Resolver for the descriptor's 'configurations' block.
"""

from .base import ConfigurationResolver
from .declared import DeclaredConfigurations

__all__ = ["ConfigurationResolver", "DeclaredConfigurations"]
