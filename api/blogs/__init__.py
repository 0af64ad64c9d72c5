"""
Blog posts: public reading endpoints plus admin authoring.
"""
