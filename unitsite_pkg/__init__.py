"""
unitsite - a small static site generator for a personal developer blog.

unitsite reads Markdown posts with YAML or TOML front matter and a Hugo-style
config.toml, groups them by taxonomy, paginates the listings and renders
them through a Jinja2 theme into a static output directory.
"""

__version__ = "1.0.0"

from .content import ContentItem, ContentLoader, FrontMatter
from .core import UnitSite
from .settings import SiteConfig, SiteSettings

__all__ = ['UnitSite', 'ContentItem', 'ContentLoader', 'FrontMatter', 'SiteConfig', 'SiteSettings']
