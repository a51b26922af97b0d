# ABOUTME: Audio format readers for Shelf.
# ABOUTME: Wraps mutagen to read metadata and chapters.
