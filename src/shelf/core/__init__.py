# ABOUTME: Core domain logic for Shelf.
# ABOUTME: Library, scanning, sessions, views, backups and time formatting.
