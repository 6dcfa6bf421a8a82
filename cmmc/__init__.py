"""Semantic checking and three-address code generation for C-- syntax trees."""

__version__ = "0.1.0"