# ABOUTME: Shelf - an audiobook library with playback progress, chapters and bookmarks.
# ABOUTME: Top-level package.
