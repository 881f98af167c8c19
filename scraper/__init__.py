"""Builder project scraper: page facts, amenities and media for one project per run."""

__version__ = "1.0.0"
