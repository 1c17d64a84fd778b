"""
Rendition Ladder: upload a video, transcode it into a ladder of lower
resolutions with an external engine, poll progress, download results.
"""

__version__ = "1.0.0"
