"""
mediascribe - Offline media transcription through external tools.

Turns a media file into a plain-text transcript with a two-stage
subprocess pipeline: FFmpeg normalization to 16kHz mono PCM → whisper.cpp
transcription → transcript read-back.
"""

__version__ = "0.1.0"
