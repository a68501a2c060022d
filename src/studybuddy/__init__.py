"""StudyBuddy - study groups with a realtime message board.

Students form groups, exchange messages with attachments and use
third-party AI services to summarise notes and build quizzes.
"""

__version__ = "0.1.0"
