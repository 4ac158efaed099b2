"""
Spaced-repetition engine for classroom flashcard quizzes.

    from classroom_srs.service import ReviewService, build_service
"""

__version__ = "0.1.0"
