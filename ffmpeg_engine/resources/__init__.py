"""
Holds the embedded FFmpeg payload (`ffmpeg.gz`), placed here by the packaging step.
"""
