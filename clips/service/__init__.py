"""
Service layer for clip acquisition and transformation.

This module contains reusable functions for fetching and transcoding media,
independent of the database/Django models. These functions are used by:
- The huey pipeline task (clips/processing.py, clips/tasks.py)
- The CLI management commands (clips/management/commands/)
"""
