"""
Core modules for agent skills.

This package contains the pieces shared by more than one skill: the error
taxonomy, image pricing, the progressive image reducer and output formatting.
"""
