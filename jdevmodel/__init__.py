# jdevmodel
# Module naming & dependency model for JDev project generation

"""
Core invariants:
    Module names are unique across the tree before anything reads them.
    A module's dependency entries are unique and keep first-occurrence order.

This package computes both from an already configured project tree.
Writing project files is left to the caller.
"""
