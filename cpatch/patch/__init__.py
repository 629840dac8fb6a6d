"""Patch validation and publishing.

- validator: is a release usable as a patch base
- diff_checker: is the local change safe to ship as a patch
- builder: per-architecture binary diffs
- coordinator: the publish pipeline and its outcome
"""
