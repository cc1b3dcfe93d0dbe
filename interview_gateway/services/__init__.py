"""Vendor-backed services: AI providers, voice providers, scraping."""
