"""
Uploaded media (project gallery images, post featured images).
"""
