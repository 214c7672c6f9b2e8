# mentorship_sync/__init__.py
