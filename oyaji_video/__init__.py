"""
Oyaji Video Studio

Turns a trending topic into a four-beat (起承転結) short film about a
stubborn old man, using Gemini for the story and Veo for the clips.
"""

__version__ = "0.1.0"
