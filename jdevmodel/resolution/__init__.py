# Resolution package for jdevmodel
"""
Dependency resolution modules.

Turns each node's per-scope add/subtract declarations into one ordered,
deduplicated list of typed dependency entries.
"""
