"""
Feature modules live under this package.

Keep module boundaries clean: each module owns its routes, models and service,
while reusing platform primitives (lifecycle, persistence, repositories).
"""
