"""Manifest generation and object-storage publishing for scraped projects."""
