"""
Media acquisition: size probing, downloads and audio transcoding.
"""
