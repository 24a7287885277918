"""Core domain package for logtail.

Core contains since-resolution, deduplication, and the tail loop without any
knowledge of where logs are stored or how they are printed, keeping the
business logic portable.
"""
