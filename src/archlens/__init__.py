"""ArchLens - static source-architecture analysis for object-oriented codebases."""

__version__ = "0.3.0"
