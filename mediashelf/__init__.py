"""
Date-partitioned, tag-aware media storage on top of a remote content
repository.
"""
