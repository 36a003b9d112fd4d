"""Catalog Composer - composite catalog template rendering.

Reconciles two independently-authored documents:
- The catalog configuration (which catalogs exist, which builders each supports)
- The composite/contribution configuration (which component uses which builder)

and dispatches each component to the matching builder.
"""

__version__ = "0.1.0"
