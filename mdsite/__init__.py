"""mdsite static page generator.

This package renders a directory of markdown documents into HTML pages by
substituting page data and meta tags into a single HTML template, and emits a
sitemap and an RSS feed for the collection.

The page pipeline runs discovery, front-matter parsing, metadata derivation,
template substitution and feed generation. ``mdsite.build`` exposes the two
entry points, ``render_site`` and ``render_preview``; the CLI module wraps
them in commands for building, previewing and serving a site.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
