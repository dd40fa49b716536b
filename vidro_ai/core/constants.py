"""
Constants
Centralised storage for pipeline-wide limits, defaults and model identifiers.
"""
ARROW = "→"

# Prompt bounds
MAX_LOG_ENTRIES = 50

# Frame sampling: vision endpoints cap images per request at 5
FRAME_OFFSETS = (0, 5, 10, 20, 30)
MAX_FRAMES = 5

# Video analysis fallbacks
UNTITLED_RECORDING = "Untitled Recording"
DEFAULT_MIME_TYPE = "video/webm"

# Duplicate detection
DUPLICATE_SIMILARITY_FLOOR = 50

# Smart replies
SMART_REPLY_COUNT = 3

# Transcription
WHISPER_MODEL = "whisper-large-v3-turbo"
TRANSCRIPTION_LANGUAGE = "en"
