"""
Save-time normalization shared by projects and blog posts.

`pipeline.save_document` is the entry point; the other modules hold the pure
stages it is built from (slugs, lifecycle, body-derived fields).
"""
