"""
Portfolio projects: public gallery plus admin authoring and image uploads.
"""
