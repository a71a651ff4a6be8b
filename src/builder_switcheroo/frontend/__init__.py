"""
Frontends Package.

Source-language frontends that produce host trees for the migration core.
"""
