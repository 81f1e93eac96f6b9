"""
Indisense - A sentiment analysis relay for text, audio and video.

This package provides a small webserver that forwards text or recorded media
to a hosted language model gateway and turns its loosely structured replies
into validated emotion scores, key themes and transcriptions.
"""

__version__ = "0.1.0"
