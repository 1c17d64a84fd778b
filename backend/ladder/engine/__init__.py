"""
Reference engine: ffprobe + ffmpeg implementation of the engine contract.

The service never imports this package; it launches the `ladder-engine`
command like any other engine executable.
"""
