# Naming package for jdevmodel
"""
Tree-wide module name deduplication.

Runs once per generation pass, after every node is configured and before
any module reference reads a name.
"""
