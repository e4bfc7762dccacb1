# CLI package for jdevmodel
"""
Read-only CLI interface for inspecting a project tree.

Commands:
    jdevmodel names  — Show deduplicated module names
    jdevmodel deps   — Show dependency entries per module
    jdevmodel check  — Fail on residual name collisions
"""
